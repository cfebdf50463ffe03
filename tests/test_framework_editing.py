"""
Unit Tests for Framework Editing
================================
"""

import pytest

from framework_editing import (
    PESTEL_FACTORS,
    add_entry,
    add_factor,
    add_force,
    add_swot_item,
    blank_like,
    delete_entry,
    delete_item,
    delete_swot_item,
    remove_factor,
    remove_force,
    set_attractiveness,
    update_entry,
    update_factor,
    update_force,
    update_framework,
    update_nested_field,
    update_swot_item,
)


@pytest.fixture
def swot():
    return {
        "strengths": [{"content": "A", "confidence": "Alta", "source": "x"}],
        "weaknesses": ["legacy"],
        "opportunities": [],
        "threats": [{"content": "T", "confidence": "Baixa", "source": "y"}],
    }


class TestSwotEditing:
    """Test suite for SWOT edits."""

    def test_add_does_not_mutate_input(self, swot):
        """Test copy-on-write for additions."""
        result = add_swot_item(swot, "strengths")
        assert len(result["strengths"]) == 2
        assert len(swot["strengths"]) == 1
        assert result["strengths"][1] == {"content": "", "confidence": "Média", "source": "análise de mercado"}

    def test_untouched_lists_keep_identity(self, swot):
        """Test that other quadrants are carried over as the same objects."""
        result = add_swot_item(swot, "strengths")
        assert result["threats"] is swot["threats"]

    def test_delete_leaves_empty_list(self, swot):
        """Test that deleting the last item keeps an empty list."""
        result = delete_swot_item(swot, "threats", 0)
        assert result["threats"] == []

    def test_update_field(self, swot):
        """Test updating one field of an item."""
        result = update_swot_item(swot, "strengths", 0, "confidence", "Baixa")
        assert result["strengths"][0]["confidence"] == "Baixa"
        assert swot["strengths"][0]["confidence"] == "Alta"

    def test_update_legacy_string_item(self, swot):
        """Test that plain-string items are upgraded to objects."""
        result = update_swot_item(swot, "weaknesses", 0, "confidence", "Alta")
        assert result["weaknesses"][0]["content"] == "legacy"
        assert result["weaknesses"][0]["confidence"] == "Alta"

    def test_add_to_missing_framework(self):
        """Test editing a framework that does not exist yet."""
        assert add_swot_item(None, "opportunities") == {
            "opportunities": [{"content": "", "confidence": "Média", "source": "análise de mercado"}]
        }

    def test_unknown_quadrant(self, swot):
        """Test that unknown quadrants are rejected."""
        with pytest.raises(ValueError):
            add_swot_item(swot, "risks")

    def test_delete_out_of_range(self, swot):
        """Test that out-of-range deletes raise."""
        with pytest.raises(IndexError):
            delete_swot_item(swot, "opportunities", 0)


class TestPorterEditing:
    """Test suite for Porter edits."""

    def test_add_force_with_name(self):
        """Test adding a named force."""
        result = add_force({}, "Complementores")
        assert result["forces"] == [{"force": "Complementores", "intensity": "Média", "description": ""}]

    def test_add_default_force(self):
        """Test adding a force without a name."""
        assert add_force(None)["forces"][0]["force"] == "New Force"

    def test_update_and_remove(self):
        """Test updating then removing a force."""
        data = add_force(add_force({}, "A"), "B")
        data = update_force(data, 1, "intensity", "Alta")
        assert data["forces"][1]["intensity"] == "Alta"
        data = remove_force(data, 0)
        assert [f["force"] for f in data["forces"]] == ["B"]

    def test_invalid_intensity(self):
        """Test that intensity is restricted to Alta/Média/Baixa."""
        with pytest.raises(ValueError):
            update_force(add_force({}), 0, "intensity", "Extrema")

    def test_attractiveness(self):
        """Test setting overall attractiveness."""
        assert set_attractiveness({"forces": []}, "Alta") == {"forces": [], "overallAttractiveness": "Alta"}


class TestPestelEditing:
    """Test suite for PESTEL edits."""

    def test_factor_lifecycle(self):
        """Test add, update and remove of a factor line."""
        data = add_factor({}, "legal", "LGPD")
        data = update_factor(data, "legal", 0, "LGPD e Marco Civil")
        assert data["legal"] == ["LGPD e Marco Civil"]
        assert remove_factor(data, "legal", 0)["legal"] == []

    def test_six_factors(self):
        """Test the factor list."""
        assert len(PESTEL_FACTORS) == 6

    def test_unknown_factor(self):
        """Test that unknown factors are rejected."""
        with pytest.raises(ValueError):
            add_factor({}, "cultural")


class TestGenericEditing:
    """Test suite for shape-driven edits."""

    def test_blank_like(self):
        """Test empty values keep the shape."""
        assert blank_like({"a": "x", "b": [1], "c": 3, "d": True, "e": {"f": "g"}}) == {
            "a": "", "b": [], "c": 0, "d": False, "e": {"f": ""},
        }

    def test_add_entry_to_object_list(self):
        """Test that new entries copy the first entry's keys."""
        data = {"items": [{"title": "A", "priority": 1}]}
        assert add_entry(data, "items")["items"][1] == {"title": "", "priority": 0}

    def test_add_entry_to_string_list(self):
        """Test that string lists get an empty string."""
        assert add_entry({"items": ["a"]}, "items")["items"] == ["a", ""]
        assert add_entry({}, "items")["items"] == [""]

    def test_update_and_delete_entry(self):
        """Test entry updates with and without a sub-field."""
        data = {"items": [{"title": "A"}], "tags": ["x"]}
        assert update_entry(data, "items", 0, "B", sub_field="title")["items"] == [{"title": "B"}]
        assert update_entry(data, "tags", 0, "y")["tags"] == ["y"]
        assert delete_entry(data, "tags", 0)["tags"] == []

    def test_update_nested_field(self):
        """Test editing a field of a nested object."""
        data = {"leap_loop": {"name": "A", "steps": []}}
        result = update_nested_field(data, "leap_loop", "name", "B")
        assert result["leap_loop"] == {"name": "B", "steps": []}
        assert data["leap_loop"]["name"] == "A"

    def test_delete_item_bounds(self):
        """Test negative indexes are rejected."""
        with pytest.raises(IndexError):
            delete_item(["a"], -1)

    def test_update_framework(self):
        """Test replacing one framework inside the analysis."""
        analysis = {"swot": {}, "porter": {"forces": []}}
        result = update_framework(analysis, "swot", {"strengths": ["x"]})
        assert result["swot"] == {"strengths": ["x"]}
        assert result["porter"] is analysis["porter"]
        assert analysis["swot"] == {}
