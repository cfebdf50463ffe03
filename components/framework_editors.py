"""
Framework Editors
=================
Streamlit editors for the War Room. Each editor takes the current framework
data and returns an EditResult holding the new data (a copy; the input is
never mutated) and whether the edit changed the structure (item added or
removed), in which case the caller re-keys the widgets and reruns.

Editors are picked by the registry's ``editor`` field:

    swot    -> render_swot_editor
    porter  -> render_porter_editor
    pestel  -> render_pestel_editor
    generic -> render_generic_editor (walks the data shape)
"""

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import streamlit as st

from analysis_schema import FrameworkSpec
from framework_editing import (
    CONFIDENCE_LEVELS,
    INTENSITY_LEVELS,
    PESTEL_FACTORS,
    SUGGESTED_PORTER_FORCES,
    SWOT_QUADRANTS,
    add_entry,
    add_factor,
    add_force,
    add_swot_item,
    delete_entry,
    delete_swot_item,
    remove_factor,
    remove_force,
    set_attractiveness,
    update_entry,
    update_factor,
    update_field,
    update_force,
    update_nested_field,
    update_swot_item,
)

logger = logging.getLogger(__name__)


class EditResult(NamedTuple):
    data: Optional[Dict[str, Any]]
    structural: bool = False


SWOT_TITLES = {
    'strengths': "Forças",
    'weaknesses': "Fraquezas",
    'opportunities': "Oportunidades",
    'threats': "Ameaças",
}

PESTEL_TITLES = {
    'political': "Político",
    'economic': "Econômico",
    'social': "Social",
    'technological': "Tecnológico",
    'environmental': "Ambiental",
    'legal': "Legal",
}


def format_title(name: str) -> str:
    """'overallAttractiveness' -> 'Overall Attractiveness'."""
    spaced = ''.join(f' {c}' if c.isupper() else c for c in name.replace('_', ' '))
    return ' '.join(word[:1].upper() + word[1:] for word in spaced.split())


def coerce_like(original: Any, text: str) -> Any:
    """Keep numbers numeric when the edited text still parses."""
    if isinstance(original, bool) or not isinstance(original, (int, float)):
        return text
    try:
        return type(original)(text)
    except ValueError:
        return text


def _option_index(options, value, default: int = 1) -> int:
    return options.index(value) if value in options else default


def _summary_field(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    current = data.get('summary') or ''
    text = st.text_area("Resumo", value=current, key=f"{key}_summary", height=80)
    return update_field(data, 'summary', text) if text != current else data


# =============================================================================
# SWOT
# =============================================================================

def render_swot_editor(data: Optional[Dict[str, Any]], key: str) -> EditResult:
    """Four quadrants of items with content, confidence and source."""
    result = data or {}
    cols = st.columns(2)
    for q_idx, quadrant in enumerate(SWOT_QUADRANTS):
        with cols[q_idx % 2]:
            st.markdown(f"**{SWOT_TITLES[quadrant]}**")
            for i, item in enumerate(result.get(quadrant) or []):
                entry = item if isinstance(item, dict) else {'content': str(item)}
                content = entry.get('content', '')
                text = st.text_area(
                    f"{SWOT_TITLES[quadrant]} {i + 1}", value=content,
                    key=f"{key}_{quadrant}_{i}_content", height=68, label_visibility="collapsed",
                )
                if text != content:
                    result = update_swot_item(result, quadrant, i, 'content', text)

                c1, c2, c3 = st.columns([2, 3, 1])
                with c1:
                    confidence = entry.get('confidence', 'Média')
                    chosen = st.selectbox(
                        "Confiança", CONFIDENCE_LEVELS, index=_option_index(CONFIDENCE_LEVELS, confidence),
                        key=f"{key}_{quadrant}_{i}_confidence",
                    )
                    if chosen != confidence:
                        result = update_swot_item(result, quadrant, i, 'confidence', chosen)
                with c2:
                    source = entry.get('source', '')
                    new_source = st.text_input("Fonte", value=source, key=f"{key}_{quadrant}_{i}_source")
                    if new_source != source:
                        result = update_swot_item(result, quadrant, i, 'source', new_source)
                with c3:
                    if st.button("🗑️", key=f"{key}_{quadrant}_{i}_delete", help="Remover item"):
                        return EditResult(delete_swot_item(result, quadrant, i), True)

            if st.button("+ Adicionar", key=f"{key}_{quadrant}_add"):
                return EditResult(add_swot_item(result, quadrant), True)

    return EditResult(_summary_field(result, key))


# =============================================================================
# PORTER
# =============================================================================

def render_porter_editor(data: Optional[Dict[str, Any]], key: str) -> EditResult:
    """Competitive forces with intensity, plus overall attractiveness."""
    result = data or {}
    for i, force in enumerate(result.get('forces') or []):
        if not isinstance(force, dict):
            continue
        c1, c2, c3 = st.columns([4, 2, 1])
        with c1:
            name = force.get('force', '')
            new_name = st.text_input("Força", value=name, key=f"{key}_force_{i}_name")
            if new_name != name:
                result = update_force(result, i, 'force', new_name)
        with c2:
            intensity = force.get('intensity', 'Média')
            chosen = st.selectbox(
                "Intensidade", INTENSITY_LEVELS, index=_option_index(INTENSITY_LEVELS, intensity),
                key=f"{key}_force_{i}_intensity",
            )
            if chosen != intensity:
                result = update_force(result, i, 'intensity', chosen)
        with c3:
            st.write("")
            if st.button("🗑️", key=f"{key}_force_{i}_delete", help="Remover força"):
                return EditResult(remove_force(result, i), True)
        description = force.get('description', '')
        text = st.text_area("Descrição", value=description, key=f"{key}_force_{i}_description", height=68)
        if text != description:
            result = update_force(result, i, 'description', text)
        st.markdown("---")

    existing = {f.get('force') for f in result.get('forces') or [] if isinstance(f, dict)}
    suggestions = [name for name in SUGGESTED_PORTER_FORCES if name not in existing]
    c1, c2 = st.columns([3, 1])
    with c1:
        picked = st.selectbox("Nova força", ["(em branco)"] + suggestions, key=f"{key}_force_suggestion")
    with c2:
        st.write("")
        if st.button("+ Adicionar Força", key=f"{key}_force_add"):
            return EditResult(add_force(result, None if picked == "(em branco)" else picked), True)

    current = result.get('overallAttractiveness') or ''
    attractiveness = st.text_input("Atratividade Geral", value=current, key=f"{key}_attractiveness")
    if attractiveness != current:
        result = set_attractiveness(result, attractiveness)

    return EditResult(_summary_field(result, key))


# =============================================================================
# PESTEL
# =============================================================================

def render_pestel_editor(data: Optional[Dict[str, Any]], key: str) -> EditResult:
    """Six factor lists of free text."""
    result = data or {}
    for factor in PESTEL_FACTORS:
        with st.expander(PESTEL_TITLES[factor], expanded=bool(result.get(factor))):
            for i, item in enumerate(result.get(factor) or []):
                c1, c2 = st.columns([8, 1])
                with c1:
                    current = item if isinstance(item, str) else str(item)
                    text = st.text_input(f"{factor} {i + 1}", value=current,
                                         key=f"{key}_{factor}_{i}", label_visibility="collapsed")
                    if text != current:
                        result = update_factor(result, factor, i, text)
                with c2:
                    if st.button("🗑️", key=f"{key}_{factor}_{i}_delete"):
                        return EditResult(remove_factor(result, factor, i), True)
            if st.button("+ Adicionar fator", key=f"{key}_{factor}_add"):
                return EditResult(add_factor(result, factor), True)

    return EditResult(_summary_field(result, key))


# =============================================================================
# GENERIC
# =============================================================================

def _edit_string_list(result: Dict[str, Any], field: str, items: List[Any], key: str) -> EditResult:
    for i, item in enumerate(items):
        c1, c2 = st.columns([8, 1])
        with c1:
            current = '' if item is None else str(item)
            text = st.text_area(f"{field} {i + 1}", value=current, key=f"{key}_{field}_{i}",
                                height=68, label_visibility="collapsed")
            if text != current:
                result = update_entry(result, field, i, coerce_like(item, text))
        with c2:
            if st.button("🗑️", key=f"{key}_{field}_{i}_delete"):
                return EditResult(delete_entry(result, field, i), True)
    if st.button("+ Adicionar Item", key=f"{key}_{field}_add"):
        return EditResult(add_entry(result, field), True)
    return EditResult(result)


def _edit_object_list(result: Dict[str, Any], field: str, items: List[Any], key: str) -> EditResult:
    for i, item in enumerate(items):
        st.caption(f"Item {i + 1}")
        if not isinstance(item, dict):
            continue
        for sub, value in item.items():
            sub_key = f"{key}_{field}_{i}_{sub}"
            if isinstance(value, (str, int, float)) or value is None:
                current = '' if value is None else str(value)
                text = st.text_area(format_title(sub), value=current, key=sub_key, height=68)
                if text != current:
                    result = update_entry(result, field, i, coerce_like(value, text), sub_field=sub)
            elif isinstance(value, list) and all(not isinstance(v, (dict, list)) for v in value):
                changed = list(value)
                for j, element in enumerate(value):
                    text = st.text_input(f"{format_title(sub)} {j + 1}", value=str(element), key=f"{sub_key}_{j}")
                    if text != str(element):
                        changed[j] = coerce_like(element, text)
                if changed != value:
                    result = update_entry(result, field, i, changed, sub_field=sub)
            else:
                st.caption(f"{format_title(sub)}: objeto complexo, não editável")
        if st.button("🗑️ Remover", key=f"{key}_{field}_{i}_delete"):
            return EditResult(delete_entry(result, field, i), True)
    if st.button("+ Adicionar Entrada", key=f"{key}_{field}_add"):
        return EditResult(add_entry(result, field), True)
    return EditResult(result)


def _edit_nested(result: Dict[str, Any], field: str, value: Dict[str, Any], key: str) -> Dict[str, Any]:
    for sub, sub_value in value.items():
        sub_key = f"{key}_{field}_{sub}"
        if isinstance(sub_value, (str, int, float)) or sub_value is None:
            current = '' if sub_value is None else str(sub_value)
            text = st.text_area(format_title(sub), value=current, key=sub_key, height=68)
            if text != current:
                result = update_nested_field(result, field, sub, coerce_like(sub_value, text))
        elif isinstance(sub_value, list) and all(not isinstance(v, (dict, list)) for v in sub_value):
            changed = list(sub_value)
            for j, element in enumerate(sub_value):
                text = st.text_input(f"{format_title(sub)} {j + 1}", value=str(element), key=f"{sub_key}_{j}")
                if text != str(element):
                    changed[j] = coerce_like(element, text)
            if changed != sub_value:
                result = update_nested_field(result, field, sub, changed)
        else:
            st.caption(f"{format_title(sub)}: objeto complexo, não editável")
    return result


def render_generic_editor(data: Optional[Dict[str, Any]], key: str, title: str = "") -> EditResult:
    """
    Editor driven by the shape of the data.

    Strings and numbers get a text area, string lists get one row per item,
    lists of objects get one block per object, nested objects get their
    scalar and list fields. Anything deeper is shown as not editable.
    """
    if data is None:
        st.info(f"Nenhum dado disponível para {title}")
        if st.button("Initialize Framework", key=f"{key}_init"):
            return EditResult({'summary': ''}, True)
        return EditResult(None)
    if not isinstance(data, dict):
        st.caption("Formato não editável")
        return EditResult(data)

    result = data
    for field, value in data.items():
        if isinstance(value, list) and value and isinstance(value[0], dict):
            st.markdown(f"**{format_title(field)}**")
            outcome = _edit_object_list(result, field, value, key)
        elif isinstance(value, list):
            st.markdown(f"**{format_title(field)}**")
            outcome = _edit_string_list(result, field, value, key)
        elif isinstance(value, dict):
            with st.container(border=True):
                st.markdown(f"**{format_title(field)}**")
                result = _edit_nested(result, field, value, key)
            continue
        else:
            current = '' if value is None else str(value)
            text = st.text_area(format_title(field), value=current, key=f"{key}_{field}", height=80)
            if text != current:
                result = update_field(result, field, coerce_like(value, text))
            continue
        if outcome.structural:
            return outcome
        result = outcome.data
    return EditResult(result)


EDITORS: Dict[str, Callable[..., EditResult]] = {
    'swot': render_swot_editor,
    'porter': render_porter_editor,
    'pestel': render_pestel_editor,
}


def render_framework_editor(spec: FrameworkSpec, data: Any, key: str) -> EditResult:
    """Dispatch to the editor registered for the framework; non-object payloads use the generic editor."""
    if data is not None and not isinstance(data, dict) and spec.editor != 'generic':
        logger.warning("%s payload is a %s, not an object; using the generic editor",
                       spec.key, type(data).__name__)
    if spec.editor == 'generic' or not isinstance(data, dict):
        return render_generic_editor(data, key, title=spec.label)
    return EDITORS[spec.editor](data, key)
