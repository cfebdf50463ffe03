"""
Company Workflow Panel
======================
Composes the per-company view: header, progress bar, admin release
controls, and the enrichment / analysis panels.
"""

import logging
from typing import Optional

import streamlit as st

from backend_client import BackendError
from components.analysis_panel import render_analysis_panel
from components.enrichment_panel import render_enrichment_panel
from components.progress_bar import render_progress_bar
from components.ui_components import no_data_yet, show_error, show_success, status_badge
from linear_theme import COLORS, badge, escape, format_date
from services.session_manager import SessionManager
from services.workflow_service import StageChangeRejected, WorkflowService, WorkflowSnapshot
from workflow_stages import get_stage_config

logger = logging.getLogger(__name__)

NO_SUBMISSION_MESSAGE = "O workflow será iniciado quando a empresa tiver uma submissão associada."

PANEL_ENRICHMENT = "Enriquecimento"
PANEL_ANALYSIS = "Análise"


def render_workflow_header(company_name: str, snapshot: WorkflowSnapshot, is_admin: bool):
    """Company name, stage label and record statuses."""
    stage = snapshot.admin_stage if is_admin else snapshot.user_stage
    config = get_stage_config(stage, is_admin)
    submission = snapshot.submission
    badges = [status_badge(snapshot.enrichment_status)] if is_admin and snapshot.enrichment else []
    if is_admin and snapshot.analysis:
        badges.append(status_badge(snapshot.analysis_status))
        badges.append(badge(f"v{snapshot.analysis.version}", 'neutral'))
        if snapshot.is_visible_to_user:
            badges.append(badge("Visível ao cliente", 'gold'))

    st.markdown(f'''
    <div style="display: flex; justify-content: space-between; align-items: flex-start; margin-bottom: 0.75rem;">
        <div>
            <div style="font-size: 1.375rem; font-weight: 600; color: {COLORS['text_primary']};">{escape(company_name)}</div>
            <div style="font-size: 0.8125rem; color: {COLORS['text_tertiary']};">
                {escape(submission.industry or '')} · Submetido em {format_date(submission.created_at)}
            </div>
        </div>
        <div style="display: flex; gap: 0.375rem;">{''.join(badges)}</div>
    </div>
    ''', unsafe_allow_html=True)
    st.markdown(f"{config.icon} **{config.label}**")
    st.caption(config.description)


@st.dialog("Compartilhar Relatório")
def render_share_dialog(workflow_service: WorkflowService, snapshot: WorkflowSnapshot, origin: str):
    """Shows the public link, generating an access code only when none exists."""
    analysis = snapshot.analysis
    key = f"{SessionManager.SHARE_URL_PREFIX}{analysis.id}"
    url = SessionManager.get(key)
    if url is None:
        try:
            url = workflow_service.get_share_url(analysis, origin)
        except (BackendError, StageChangeRejected) as e:
            show_error("Não foi possível gerar o link", str(e))
            return
        SessionManager.set(key, url)

    st.markdown("Envie este link para o cliente acessar o relatório:")
    st.code(url, language=None)
    if snapshot.analysis.is_blurred:
        st.caption("O conteúdo premium está bloqueado para este link.")
    if st.button("Fechar", use_container_width=True):
        st.rerun()


def render_admin_actions(workflow_service: WorkflowService, snapshot: WorkflowSnapshot, origin: str):
    """Blur toggle and share link; only offered once the report is released."""
    analysis = snapshot.analysis
    if not workflow_service.can_share(analysis):
        return

    col1, col2, _ = st.columns([1, 1, 3])
    with col1:
        label = "🔒 Premium Bloqueado" if analysis.is_blurred else "🔓 Premium Liberado"
        if st.button(label, key=f"blur_{analysis.id}", use_container_width=True,
                     help="Alterna o bloqueio do conteúdo premium para o cliente"):
            try:
                blurred = workflow_service.toggle_blur(analysis)
            except BackendError as e:
                show_error("Não foi possível alterar o bloqueio", str(e))
            else:
                show_success("Conteúdo premium bloqueado" if blurred else "Conteúdo premium liberado")
                st.rerun()
    with col2:
        if st.button("🔗 Copiar Link", key=f"share_{analysis.id}", use_container_width=True):
            render_share_dialog(workflow_service, snapshot, origin)


def render_company_workflow_panel(
    company_name: str,
    snapshot: Optional[WorkflowSnapshot],
    is_admin: bool,
    workflow_service: WorkflowService,
    analysis_service=None,
    report_service=None,
    origin: str = "",
):
    """
    Render the full workflow view for one company.

    Args:
        company_name: Display name
        snapshot: Loaded workflow records, or None when the company has no
            submission yet
        is_admin: Role of the viewer
        workflow_service: Applies stage changes and release controls
        analysis_service: Used by the admin analysis editor
        report_service: Used by the analysis preview
        origin: Public base URL for share links
    """
    if snapshot is None:
        no_data_yet(NO_SUBMISSION_MESSAGE)
        return

    render_workflow_header(company_name, snapshot, is_admin)

    def on_stage_change(target_stage: int):
        workflow_service.change_stage(snapshot, target_stage)

    render_progress_bar(
        snapshot,
        is_admin,
        on_stage_change=on_stage_change if is_admin else None,
        key_prefix=f"wf_{snapshot.submission.id}",
    )

    if is_admin:
        render_admin_actions(workflow_service, snapshot, origin)

    st.markdown("---")

    if not is_admin:
        render_analysis_panel(snapshot, is_admin=False, report_service=report_service)
        return

    default = 0 if snapshot.admin_stage <= 2 else 1
    panel = st.radio(
        "Painel",
        [PANEL_ENRICHMENT, PANEL_ANALYSIS],
        index=default,
        horizontal=True,
        key=f"panel_{snapshot.submission.id}",
        label_visibility="collapsed",
    )
    if panel == PANEL_ENRICHMENT:
        render_enrichment_panel(snapshot, is_admin=True, workflow_service=workflow_service)
    else:
        render_analysis_panel(
            snapshot,
            is_admin=True,
            analysis_service=analysis_service,
            report_service=report_service,
        )
