"""
War Room
========
Admin editor for a generated analysis.

Edits go to a local draft kept in session state per analysis id. The draft
is only persisted on "Salvar Rascunho" (new version) or "Aprovar".
"""

import copy
import logging
from typing import Any, Dict, Optional

import streamlit as st

from analysis_schema import Analysis, LAYER_LABELS, Submission, frameworks_by_layer, get_framework, has_framework_data
from backend_client import BackendError
from components.framework_editors import render_framework_editor
from components.report_preview import jump_to_page, render_report_preview
from components.ui_components import show_error, show_success
from framework_editing import update_framework
from linear_theme import COLORS, badge
from page_mapping import get_framework_pages
from services.session_manager import SessionManager

logger = logging.getLogger(__name__)

REVISION_PREFIX = 'war_room_rev_'


def get_draft(analysis: Analysis) -> Dict[str, Any]:
    """The working copy of the analysis, created from the saved version on first use."""
    draft = SessionManager.get_draft(analysis.id)
    if draft is None:
        draft = copy.deepcopy(analysis.analysis)
        SessionManager.set_draft(analysis.id, draft, dirty=False)
    return draft


def _revision(analysis_id: str) -> int:
    return SessionManager.get(f"{REVISION_PREFIX}{analysis_id}", 0)


def _bump_revision(analysis_id: str) -> None:
    SessionManager.set(f"{REVISION_PREFIX}{analysis_id}", _revision(analysis_id) + 1)


def reset_draft(analysis: Analysis) -> None:
    SessionManager.clear_draft(analysis.id)
    _bump_revision(analysis.id)


def _selected_key(analysis_id: str) -> str:
    return f"{SessionManager.SELECTED_FRAMEWORK}_{analysis_id}"


def render_framework_navigation(analysis_id: str, draft: Dict[str, Any]) -> str:
    """
    Framework menu grouped by layer; a filled dot marks frameworks with data.

    Returns:
        Key of the selected framework
    """
    key = _selected_key(analysis_id)
    selected = SessionManager.get(key, 'synthesis')
    for layer, specs in frameworks_by_layer():
        if layer in LAYER_LABELS:
            st.caption(LAYER_LABELS[layer])
        for spec in specs:
            dot = "●" if has_framework_data(draft, spec.key) else "○"
            if st.button(
                f"{dot} {spec.label}",
                key=f"nav_{analysis_id}_{spec.key}",
                use_container_width=True,
                type="primary" if spec.key == selected else "secondary",
            ):
                SessionManager.set(key, spec.key)
                st.rerun()
    return selected


def _toolbar(analysis: Analysis, draft: Dict[str, Any], analysis_service, dirty: bool):
    c1, c2, c3, c4, c5 = st.columns([2, 1, 1, 1, 1])
    with c1:
        marker = badge("● Alterações não salvas", 'warning') if dirty else badge(f"v{analysis.version} salva", 'success')
        st.markdown(marker, unsafe_allow_html=True)
    with c2:
        if st.button("↺ Descartar", key=f"wr_reset_{analysis.id}", disabled=not dirty, use_container_width=True):
            reset_draft(analysis)
            st.rerun()
    with c3:
        if st.button("💾 Salvar Rascunho", key=f"wr_save_{analysis.id}", disabled=not dirty, use_container_width=True):
            try:
                version = analysis_service.save_draft(analysis, draft)
            except (BackendError, ValueError) as e:
                show_error("Erro ao salvar rascunho", str(e))
            else:
                reset_draft(analysis)
                show_success(f"Rascunho salvo como versão {version}")
                st.rerun()
    with c4:
        if st.button("✅ Aprovar", key=f"wr_approve_{analysis.id}", type="primary", use_container_width=True):
            try:
                analysis_service.approve(analysis, draft if dirty else None)
            except (BackendError, ValueError) as e:
                show_error("Erro ao aprovar análise", str(e))
            else:
                reset_draft(analysis)
                show_success("Análise aprovada")
                st.rerun()
    with c5:
        st.download_button(
            "⬇️ JSON",
            data=analysis_service.export_json(analysis, draft),
            file_name=analysis_service.export_filename(analysis),
            mime="application/json",
            key=f"wr_download_{analysis.id}",
            use_container_width=True,
        )


def render_war_room_editor(
    analysis: Analysis,
    submission: Optional[Submission],
    analysis_service,
    report_service=None,
):
    """
    Render the War Room for one analysis.

    Args:
        analysis: Analysis under review (generated or completed)
        submission: Company submission, for the preview cover
        analysis_service: Saves, approves and exports
        report_service: Renders the preview tab
    """
    if not analysis_service.is_editable(analysis):
        st.info("Esta análise não está aberta para edição.")
        return

    draft = get_draft(analysis)
    dirty = SessionManager.is_draft_dirty(analysis.id)
    _toolbar(analysis, draft, analysis_service, dirty)

    preview_prefix = f"war_room_{analysis.id}"
    nav_col, main_col = st.columns([1, 3])
    with nav_col:
        selected = render_framework_navigation(analysis.id, draft)

    with main_col:
        spec = get_framework(selected)
        tab_editor, tab_preview = st.tabs(["✏️ Editor", "📄 Pré-visualização"])
        with tab_editor:
            head, jump = st.columns([3, 1])
            with head:
                st.markdown(f'<span style="font-size: 1.125rem; font-weight: 600; color: {COLORS["text_primary"]};">'
                            f'{spec.label}</span>', unsafe_allow_html=True)
                if spec.description:
                    st.caption(spec.description)
            pages = get_framework_pages(spec.key)
            with jump:
                if pages:
                    st.button(
                        f"📄 Ver página {pages[0]}",
                        key=f"wr_jump_{analysis.id}_{spec.key}",
                        on_click=jump_to_page,
                        args=(preview_prefix, pages[0]),
                        help="Abre a página na aba de pré-visualização",
                    )

            current = draft.get(spec.key)
            result = render_framework_editor(
                spec, current, key=f"wr_{analysis.id}_{_revision(analysis.id)}_{spec.key}"
            )
            if result.data != current:
                SessionManager.set_draft(analysis.id, update_framework(draft, spec.key, result.data), dirty=True)
                if result.structural:
                    _bump_revision(analysis.id)
                st.rerun()

        with tab_preview:
            if report_service is None:
                st.caption("Pré-visualização indisponível.")
            else:
                render_report_preview(report_service, analysis, submission, frameworks=draft, key_prefix=preview_prefix)
