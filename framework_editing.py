"""
Imensiah - Framework Editing
============================
Copy-on-write edits used by the War Room editors.

Every function returns a new container and leaves its input untouched.
Lists that the edit does not touch are carried over as the same objects,
so callers can compare by identity to see what changed. A list emptied by
a delete stays an empty list.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

SWOT_QUADRANTS = ("strengths", "weaknesses", "opportunities", "threats")
PESTEL_FACTORS = ("political", "economic", "social", "technological", "environmental", "legal")
CONFIDENCE_LEVELS = ("Alta", "Média", "Baixa")
INTENSITY_LEVELS = ("Alta", "Média", "Baixa")

SUGGESTED_PORTER_FORCES = (
    "Rivalidade entre Concorrentes",
    "Ameaça de Novos Entrantes",
    "Poder de Barganha dos Fornecedores",
    "Poder de Barganha dos Clientes",
    "Ameaça de Produtos Substitutos",
    "Complementores",
    "Novas Tecnologias",
)


def new_swot_item() -> Dict[str, str]:
    return {"content": "", "confidence": "Média", "source": "análise de mercado"}


def new_porter_force() -> Dict[str, str]:
    return {"force": "New Force", "intensity": "Média", "description": ""}


# =============================================================================
# LIST PRIMITIVES
# =============================================================================


def _as_list(items: Optional[List[Any]]) -> List[Any]:
    return list(items) if isinstance(items, list) else []


def add_item(items: Optional[List[Any]], item: Any) -> List[Any]:
    return _as_list(items) + [item]


def delete_item(items: Optional[List[Any]], index: int) -> List[Any]:
    out = _as_list(items)
    if not 0 <= index < len(out):
        raise IndexError(f"No item at index {index}")
    del out[index]
    return out


def update_item(items: Optional[List[Any]], index: int, value: Any) -> List[Any]:
    out = _as_list(items)
    if not 0 <= index < len(out):
        raise IndexError(f"No item at index {index}")
    out[index] = value
    return out


def update_item_field(items: Optional[List[Any]], index: int, field: str, value: Any) -> List[Any]:
    out = _as_list(items)
    current = out[index] if 0 <= index < len(out) else None
    if not isinstance(current, dict):
        raise IndexError(f"No object at index {index}")
    return update_item(out, index, {**current, field: value})


def update_field(data: Optional[Dict[str, Any]], field: str, value: Any) -> Dict[str, Any]:
    return {**(data or {}), field: value}


def update_nested_field(
    data: Optional[Dict[str, Any]],
    parent: str,
    field: str,
    value: Any,
) -> Dict[str, Any]:
    base = data or {}
    nested = base.get(parent)
    nested = nested if isinstance(nested, dict) else {}
    return {**base, parent: {**nested, field: value}}


# =============================================================================
# SWOT
# =============================================================================


def _check_quadrant(quadrant: str) -> None:
    if quadrant not in SWOT_QUADRANTS:
        raise ValueError(f"Unknown SWOT quadrant: {quadrant}")


def add_swot_item(data: Optional[Dict[str, Any]], quadrant: str) -> Dict[str, Any]:
    _check_quadrant(quadrant)
    base = data or {}
    return {**base, quadrant: add_item(base.get(quadrant), new_swot_item())}


def delete_swot_item(data: Optional[Dict[str, Any]], quadrant: str, index: int) -> Dict[str, Any]:
    _check_quadrant(quadrant)
    base = data or {}
    return {**base, quadrant: delete_item(base.get(quadrant), index)}


def update_swot_item(
    data: Optional[Dict[str, Any]],
    quadrant: str,
    index: int,
    field: str,
    value: Any,
) -> Dict[str, Any]:
    _check_quadrant(quadrant)
    base = data or {}
    items = base.get(quadrant)
    # Legacy analyses store plain strings
    if isinstance(items, list) and 0 <= index < len(items) and isinstance(items[index], str):
        items = update_item(items, index, {**new_swot_item(), "content": items[index]})
    return {**base, quadrant: update_item_field(items, index, field, value)}


# =============================================================================
# PORTER
# =============================================================================


def add_force(data: Optional[Dict[str, Any]], name: Optional[str] = None) -> Dict[str, Any]:
    base = data or {}
    force = new_porter_force()
    if name:
        force["force"] = name
    return {**base, "forces": add_item(base.get("forces"), force)}


def remove_force(data: Optional[Dict[str, Any]], index: int) -> Dict[str, Any]:
    base = data or {}
    return {**base, "forces": delete_item(base.get("forces"), index)}


def update_force(
    data: Optional[Dict[str, Any]],
    index: int,
    field: str,
    value: Any,
) -> Dict[str, Any]:
    if field == "intensity" and value not in INTENSITY_LEVELS:
        raise ValueError(f"Intensity must be one of {INTENSITY_LEVELS}")
    base = data or {}
    return {**base, "forces": update_item_field(base.get("forces"), index, field, value)}


def set_attractiveness(data: Optional[Dict[str, Any]], value: str) -> Dict[str, Any]:
    return update_field(data, "overallAttractiveness", value)


# =============================================================================
# PESTEL
# =============================================================================


def _check_factor(factor: str) -> None:
    if factor not in PESTEL_FACTORS:
        raise ValueError(f"Unknown PESTEL factor: {factor}")


def add_factor(data: Optional[Dict[str, Any]], factor: str, text: str = "") -> Dict[str, Any]:
    _check_factor(factor)
    base = data or {}
    return {**base, factor: add_item(base.get(factor), text)}


def remove_factor(data: Optional[Dict[str, Any]], factor: str, index: int) -> Dict[str, Any]:
    _check_factor(factor)
    base = data or {}
    return {**base, factor: delete_item(base.get(factor), index)}


def update_factor(data: Optional[Dict[str, Any]], factor: str, index: int, text: str) -> Dict[str, Any]:
    _check_factor(factor)
    base = data or {}
    return {**base, factor: update_item(base.get(factor), index, text)}


# =============================================================================
# GENERIC (shape-driven)
# =============================================================================


def blank_like(value: Any) -> Any:
    """An empty value of the same shape, used as a template for new entries."""
    if isinstance(value, dict):
        return {k: blank_like(v) for k, v in value.items()}
    if isinstance(value, list):
        return []
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return 0
    return ""


def add_entry(data: Optional[Dict[str, Any]], field: str) -> Dict[str, Any]:
    """
    Append an entry to a list field, shaped like the existing entries.

    Lists of objects get a copy of the first object's keys with blank values;
    anything else gets an empty string.
    """
    base = data or {}
    items = _as_list(base.get(field))
    template: Any = ""
    if items and isinstance(items[0], dict):
        template = blank_like(items[0])
    return {**base, field: add_item(items, template)}


def delete_entry(data: Optional[Dict[str, Any]], field: str, index: int) -> Dict[str, Any]:
    base = data or {}
    return {**base, field: delete_item(base.get(field), index)}


def update_entry(
    data: Optional[Dict[str, Any]],
    field: str,
    index: int,
    value: Any,
    sub_field: Optional[str] = None,
) -> Dict[str, Any]:
    base = data or {}
    if sub_field is None:
        return {**base, field: update_item(base.get(field), index, value)}
    return {**base, field: update_item_field(base.get(field), index, sub_field, value)}


def update_framework(
    analysis: Optional[Dict[str, Any]],
    key: str,
    data: Any,
) -> Dict[str, Any]:
    """Replace one framework inside the analysis dict."""
    return {**(analysis or {}), key: data}
