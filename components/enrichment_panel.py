"""
Enrichment Panel
================
Shows the company research gathered before analysis. Each section is a
small Campo / Valor table; admins may correct values while the enrichment
waits for review (stage 2).
"""

import logging
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from backend_client import BackendError
from components.ui_components import list_section, no_data_yet, show_error, show_success
from services.workflow_service import StageChangeRejected, WorkflowService, WorkflowSnapshot
from workflow_stages import EnrichmentStatus

logger = logging.getLogger(__name__)

SECTION_LABELS = {
    'profile_overview': "Perfil da Empresa",
    'financials': "Financeiro",
    'market_position': "Posição de Mercado",
    'strategic_assessment': "Avaliação Estratégica",
    'competitive_landscape': "Cenário Competitivo",
    'data_sources': "Fontes de Dados",
}

LIST_SEPARATOR = "; "
_TRUE_WORDS = frozenset({"true", "sim", "yes", "1"})
_FALSE_WORDS = frozenset({"false", "não", "nao", "no", "0"})


def _field_label(name: str) -> str:
    return name.replace('_', ' ').capitalize()


def _display(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, list):
        return LIST_SEPARATOR.join(str(v) for v in value)
    if isinstance(value, dict):
        return LIST_SEPARATOR.join(f"{k}: {v}" for k, v in value.items())
    return str(value)


def _cell_text(value: Any) -> str:
    if value is None or (not isinstance(value, (list, dict)) and pd.isna(value)):
        return ''
    return str(value).strip()


def _parse_like(old: Any, text: str) -> Any:
    if old is None:
        return text or None
    if isinstance(old, bool):
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        return text
    if isinstance(old, (int, float)):
        try:
            return type(old)(text)
        except ValueError:
            return text
    return text


def _parse_list(old: List[Any], text: str) -> List[Any]:
    known = {str(item).strip(): item for item in old}
    sample = next((item for item in old if item is not None), None)
    items = []
    for part in text.split(LIST_SEPARATOR.strip()):
        part = part.strip()
        if not part:
            continue
        if part in known:
            items.append(known[part])
        elif isinstance(sample, (int, float)):
            items.append(_parse_like(sample, part))
        else:
            items.append(part)
    return items


def section_to_frame(section: Dict[str, Any]) -> pd.DataFrame:
    """One row per field; list values are joined for display."""
    rows = [
        {'field': key, 'Campo': _field_label(key), 'Valor': _display(value)}
        for key, value in section.items()
    ]
    return pd.DataFrame(rows, columns=['field', 'Campo', 'Valor'])


def frame_to_section(frame: pd.DataFrame, original: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rebuild a section from an edited table.

    Cells whose text did not change keep the original value untouched.
    Edited cells are parsed back into the original value's type: lists are
    split again (known items keep their type), numbers and booleans are
    parsed when the text still reads as one, and a cleared cell gives None
    back when the field was None. Nested dicts are not editable and are kept.
    """
    updated = dict(original)
    for row in frame.to_dict('records'):
        key = row['field']
        old = original.get(key)
        text = _cell_text(row['Valor'])
        if isinstance(old, dict) or text == _display(old).strip():
            continue
        if isinstance(old, list):
            updated[key] = _parse_list(old, text)
        else:
            updated[key] = _parse_like(old, text)
    return updated


def _sections(data: Dict[str, Any]) -> List[str]:
    known = [k for k in SECTION_LABELS if k in data]
    return known + [k for k in data if k not in SECTION_LABELS]


def _render_readonly(data: Dict[str, Any]):
    for key in _sections(data):
        value = data[key]
        label = SECTION_LABELS.get(key, _field_label(key))
        if isinstance(value, dict):
            with st.expander(label, expanded=key == 'profile_overview'):
                st.dataframe(section_to_frame(value)[['Campo', 'Valor']], hide_index=True, use_container_width=True)
        elif isinstance(value, list):
            list_section(label, value)
        elif value not in (None, ''):
            st.markdown(f"**{label}:** {value}")


def _render_editable(snapshot: WorkflowSnapshot, workflow_service: WorkflowService):
    enrichment = snapshot.enrichment
    data = enrichment.data
    edited = dict(data)

    for key in _sections(data):
        value = data[key]
        label = SECTION_LABELS.get(key, _field_label(key))
        if not isinstance(value, dict):
            continue
        with st.expander(label, expanded=key == 'profile_overview'):
            frame = st.data_editor(
                section_to_frame(value),
                key=f"enrichment_{enrichment.id}_{key}",
                hide_index=True,
                use_container_width=True,
                disabled=['field', 'Campo'],
                column_config={'field': None},
            )
            edited[key] = frame_to_section(frame, value)

    for key in _sections(data):
        if isinstance(data[key], list):
            list_section(SECTION_LABELS.get(key, _field_label(key)), data[key])

    if st.button("💾 Salvar Enriquecimento", key=f"save_enrichment_{enrichment.id}", type="primary",
                 disabled=edited == data):
        try:
            workflow_service.update_enrichment(enrichment, edited)
        except (BackendError, StageChangeRejected) as e:
            show_error("Erro ao salvar enriquecimento", str(e))
        else:
            logger.info("Saved enrichment edits for %s", enrichment.id)
            show_success("Enriquecimento salvo")


def render_enrichment_panel(
    snapshot: WorkflowSnapshot,
    is_admin: bool = True,
    workflow_service: WorkflowService = None,
):
    """
    Render the enrichment for a submission.

    Args:
        snapshot: Loaded workflow records
        is_admin: Admins may edit at stage 2
        workflow_service: Needed for saving edits
    """
    enrichment = snapshot.enrichment
    if enrichment is None or enrichment.status == EnrichmentStatus.PENDING:
        no_data_yet("O enriquecimento será iniciado automaticamente após a submissão.")
        return
    if enrichment.status == EnrichmentStatus.PROCESSING:
        st.info("⏳ Enriquecimento em processamento. Atualize a página em alguns instantes.")
        return
    if not enrichment.data:
        no_data_yet("O enriquecimento não retornou dados.")
        return

    if is_admin and workflow_service is not None and snapshot.stage_content(True).enrichment_editable:
        st.caption("Revise e corrija os dados antes de aprovar o enriquecimento.")
        _render_editable(snapshot, workflow_service)
    else:
        _render_readonly(enrichment.data)
