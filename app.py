"""
Imensiah Strategic Reports
==========================
Main application entry point.

Sections:
1. Painel - All submissions with their workflow stage
2. Empresa - Workflow of the selected company (stages, enrichment, analysis)
3. War Room - Edit the generated analysis
4. Assistente - Twelve-step guided analysis
5. Relatório - Preview of the 24-page report

Run with:
    streamlit run app.py

Without a configured backend (st.secrets["backend"]["url"] or
BACKEND_API_URL) the app runs on demo data.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional

import pandas as pd
import streamlit as st

from analysis_schema import Submission
from api.logging_config import configure_logging
from backend_client import BackendError
from backend_utils import get_backend, get_public_base_url, is_demo_mode
from components.report_preview import render_report_preview
from components.ui_components import metric_row, no_data_yet, page_header, show_error
from components.war_room import render_war_room_editor
from components.wizard_ui import render_wizard
from components.workflow_panel import NO_SUBMISSION_MESSAGE, render_company_workflow_panel
from linear_theme import configure_page, format_date
from services import AnalysisService, ReportService, SessionManager, WorkflowService, WorkflowSnapshot
from workflow_stages import ADMIN_STAGES, get_stage_config

configure_logging()
logger = logging.getLogger(__name__)

configure_page()

SECTIONS = [
    ('dashboard', "📊 Painel"),
    ('company', "🏢 Empresa"),
    ('war_room', "✏️ War Room"),
    ('wizard', "🧭 Assistente"),
    ('report', "📄 Relatório"),
]
USER_SECTIONS = {'company', 'report'}


def init_session_state():
    """Initialize session state variables."""
    defaults = {
        SessionManager.CURRENT_SECTION: 'dashboard',
        SessionManager.USER_ROLE: 'admin',
        SessionManager.SUBMISSION_ID: None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

    is_valid, issues = SessionManager.validate_state()
    if not is_valid:
        logger.warning("Resetting invalid session state: %s", issues)
        for key, value in defaults.items():
            st.session_state[key] = value


def load_snapshot(workflow_service: WorkflowService, submission_id: Optional[str]) -> Optional[WorkflowSnapshot]:
    if not submission_id:
        return None
    try:
        return workflow_service.load(submission_id)
    except BackendError as e:
        show_error("Erro ao carregar o workflow", str(e))
        return None


# =============================================================================
# SIDEBAR
# =============================================================================

def render_submission_selector(submissions: List[Submission]):
    st.sidebar.markdown("### Empresa")
    if not submissions:
        st.sidebar.info("Nenhuma submissão encontrada")
        return

    ids = [s.id for s in submissions]
    names = {s.id: s.company_name or s.id for s in submissions}
    current = SessionManager.get_submission_id()
    index = ids.index(current) if current in ids else 0
    selected = st.sidebar.selectbox(
        "Empresa",
        ids,
        index=index,
        format_func=lambda sid: names[sid],
        label_visibility="collapsed",
    )
    if selected != current:
        SessionManager.set_submission_id(selected)


def render_navigation(is_admin: bool):
    """Render the main navigation in sidebar."""
    st.sidebar.markdown("---")
    st.sidebar.markdown("### Navegação")
    current = SessionManager.get(SessionManager.CURRENT_SECTION)
    for key, label in SECTIONS:
        if not is_admin and key not in USER_SECTIONS:
            continue
        if st.sidebar.button(
            label,
            key=f"nav_{key}",
            use_container_width=True,
            type="primary" if key == current else "secondary",
        ):
            SessionManager.set(SessionManager.CURRENT_SECTION, key)
            st.rerun()


def render_role_switch():
    st.sidebar.markdown("---")
    role = st.sidebar.radio(
        "Visão",
        ['admin', 'user'],
        index=0 if SessionManager.is_admin() else 1,
        format_func=lambda r: "Administrador" if r == 'admin' else "Cliente",
        horizontal=True,
    )
    if role != SessionManager.get(SessionManager.USER_ROLE):
        SessionManager.set(SessionManager.USER_ROLE, role)
        if role == 'user':
            SessionManager.set(SessionManager.CURRENT_SECTION, 'company')
        st.rerun()


# =============================================================================
# SECTIONS
# =============================================================================

def render_dashboard_section(workflow_service: WorkflowService, submissions: List[Submission]):
    page_header("Painel", "Todas as submissões e o estágio de cada workflow")
    if not submissions:
        no_data_yet("As submissões aparecerão aqui assim que chegarem.")
        return

    rows = []
    stages = Counter()
    for submission in submissions:
        snapshot = load_snapshot(workflow_service, submission.id)
        stage = snapshot.admin_stage if snapshot else 1
        stages[stage] += 1
        rows.append({
            'Empresa': submission.company_name,
            'Setor': submission.industry or '—',
            'Estágio': f"{stage}. {get_stage_config(stage).label}",
            'Análise': (snapshot.analysis_status if snapshot else None) or '—',
            'Submetido': format_date(submission.created_at),
        })

    metric_row([
        {'label': "Submissões", 'value': len(submissions)},
        {'label': "Aguardando revisão", 'value': stages[2] + stages[4]},
        {'label': "Aprovadas", 'value': stages[5]},
        {'label': "Liberadas", 'value': stages[6]},
    ])
    st.markdown("")
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)

    with st.expander("Estágios do workflow"):
        for config in ADMIN_STAGES:
            st.markdown(f"{config.icon} **{config.stage}. {config.label}** - {config.description}")


def render_company_section(
    workflow_service: WorkflowService,
    analysis_service: AnalysisService,
    report_service: ReportService,
    submissions: List[Submission],
    is_admin: bool,
):
    submission_id = SessionManager.get_submission_id()
    snapshot = load_snapshot(workflow_service, submission_id)
    company = next((s.company_name for s in submissions if s.id == submission_id), "")
    if snapshot is None and not company:
        page_header("Empresa")
        no_data_yet(NO_SUBMISSION_MESSAGE)
        return
    render_company_workflow_panel(
        company or snapshot.submission.company_name,
        snapshot,
        is_admin,
        workflow_service,
        analysis_service=analysis_service,
        report_service=report_service,
        origin=get_public_base_url(),
    )


def render_war_room_section(analysis_service: AnalysisService, report_service: ReportService,
                            workflow_service: WorkflowService):
    page_header("War Room", "Revise e edite a análise estratégica antes de aprovar")
    snapshot = load_snapshot(workflow_service, SessionManager.get_submission_id())
    if snapshot is None or snapshot.analysis is None:
        no_data_yet("A análise será iniciada automaticamente após aprovação do enriquecimento.")
        return
    render_war_room_editor(snapshot.analysis, snapshot.submission, analysis_service, report_service)


def render_wizard_section(backend, submissions: List[Submission]):
    page_header("Assistente", "Análise guiada, um framework por etapa")
    submission_id = SessionManager.get_submission_id()
    submission = next((s for s in submissions if s.id == submission_id), None)
    if submission is None:
        no_data_yet(NO_SUBMISSION_MESSAGE)
        return
    render_wizard(backend, submission.id, submission.company_name)


def render_report_section(workflow_service: WorkflowService, report_service: ReportService, is_admin: bool):
    page_header("Relatório", "Relatório estratégico de 24 páginas")
    snapshot = load_snapshot(workflow_service, SessionManager.get_submission_id())
    if snapshot is None or snapshot.analysis is None:
        no_data_yet("O relatório ficará disponível após a conclusão da análise.")
        return
    if not is_admin and not snapshot.stage_content(is_admin=False).show_report_button:
        no_data_yet("Seu relatório estará disponível assim que for liberado pela nossa equipe.")
        return
    frameworks = None if is_admin else report_service.visible_frameworks(snapshot.analysis)
    render_report_preview(
        report_service,
        snapshot.analysis,
        snapshot.submission,
        frameworks=frameworks,
        key_prefix=f"section_{snapshot.analysis.id}",
    )


# =============================================================================
# MAIN
# =============================================================================

def main():
    init_session_state()
    backend = get_backend()
    workflow_service = WorkflowService(backend)
    analysis_service = AnalysisService(backend)
    report_service = ReportService(backend)

    st.sidebar.markdown("## 🧭 Imensiah")
    if is_demo_mode():
        st.sidebar.caption("Modo demonstração (dados de exemplo)")

    try:
        submissions = workflow_service.list_submissions()
    except BackendError as e:
        show_error("Erro ao carregar submissões", str(e))
        submissions = []

    is_admin = SessionManager.is_admin()
    render_submission_selector(submissions)
    render_navigation(is_admin)
    render_role_switch()

    st.sidebar.markdown(
        f"<div style='text-align: center; color: #64748b; font-size: 0.75rem;'>"
        f"v0.1 | {datetime.now().strftime('%Y-%m-%d')}"
        f"</div>",
        unsafe_allow_html=True
    )

    section = SessionManager.get(SessionManager.CURRENT_SECTION)
    if not is_admin and section not in USER_SECTIONS:
        section = 'company'

    if section == 'dashboard':
        render_dashboard_section(workflow_service, submissions)
    elif section == 'company':
        render_company_section(workflow_service, analysis_service, report_service, submissions, is_admin)
    elif section == 'war_room':
        render_war_room_section(analysis_service, report_service, workflow_service)
    elif section == 'wizard':
        render_wizard_section(backend, submissions)
    elif section == 'report':
        render_report_section(workflow_service, report_service, is_admin)
    else:
        render_dashboard_section(workflow_service, submissions)


if __name__ == "__main__":
    main()
