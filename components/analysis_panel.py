"""
Analysis Panel
==============
Read view of a strategic analysis: summary card, one expander per
framework, and the admin entry point into the War Room editor.

End users only see the analysis once it is released, and while it is
blurred the premium access policy decides what each framework shows.
"""

import logging
from typing import Any, Dict, Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from analysis_schema import (
    ACCESS_LOCKED,
    ACCESS_PARTIAL,
    FRAMEWORKS,
    Analysis,
    FrameworkSpec,
    apply_access_policy,
    has_framework_data,
)
from components.report_preview import render_report_preview
from components.ui_components import (
    apply_plotly_theme,
    info_card,
    list_section,
    metric_row,
    no_data_yet,
    show_error,
    status_badge,
)
from components.war_room import render_war_room_editor
from framework_editing import SWOT_QUADRANTS
from linear_theme import COLORS, escape, format_date
from services.workflow_service import WorkflowSnapshot
from workflow_stages import AnalysisStatus

logger = logging.getLogger(__name__)

ADMIN_WAITING_MESSAGE = "A análise será iniciada automaticamente após aprovação do enriquecimento."

INTENSITY_SCORES = {'Alta': 3, 'Média': 2, 'Baixa': 1}
INTENSITY_COLORS = {'Alta': COLORS['error'], 'Média': COLORS['warning'], 'Baixa': COLORS['success']}

SWOT_LABELS = {
    'strengths': "💪 Forças",
    'weaknesses': "⚠️ Fraquezas",
    'opportunities': "🌱 Oportunidades",
    'threats': "⛈️ Ameaças",
}


def _label(name: str) -> str:
    spaced = ''.join(f' {c.lower()}' if c.isupper() else c for c in name)
    return spaced.replace('_', ' ').strip().capitalize()


# =============================================================================
# CHART DATA
# =============================================================================

def porter_intensity_frame(porter: Optional[Dict[str, Any]]) -> pd.DataFrame:
    """Forces with a numeric intensity score, for the Porter chart."""
    rows = []
    for force in (porter or {}).get('forces') or []:
        if not isinstance(force, dict):
            continue
        intensity = force.get('intensity') or 'Média'
        rows.append({
            'force': force.get('force') or '—',
            'intensity': intensity,
            'score': INTENSITY_SCORES.get(intensity, 0),
        })
    return pd.DataFrame(rows, columns=['force', 'intensity', 'score'])


def render_porter_chart(porter: Optional[Dict[str, Any]]):
    frame = porter_intensity_frame(porter)
    if frame.empty:
        return
    fig = go.Figure(go.Bar(
        x=frame['score'],
        y=frame['force'],
        orientation='h',
        marker_color=[INTENSITY_COLORS.get(i, COLORS['text_tertiary']) for i in frame['intensity']],
        text=frame['intensity'],
        textposition='auto',
    ))
    fig.update_layout(
        height=60 + 40 * len(frame),
        xaxis=dict(range=[0, 3], tickvals=[1, 2, 3], ticktext=['Baixa', 'Média', 'Alta']),
        showlegend=False,
    )
    st.plotly_chart(apply_plotly_theme(fig), use_container_width=True)


# =============================================================================
# FRAMEWORK CONTENT
# =============================================================================

def _render_value(name: str, value: Any):
    if value in (None, '', [], {}):
        return
    if isinstance(value, list):
        list_section(_label(name), value)
    elif isinstance(value, dict):
        st.markdown(f"**{_label(name)}**")
        for key, sub in value.items():
            _render_value(key, sub)
    else:
        st.markdown(f"**{_label(name)}:** {value}")


def _render_swot(data: Dict[str, Any]):
    cols = st.columns(2)
    for i, quadrant in enumerate(SWOT_QUADRANTS):
        with cols[i % 2]:
            list_section(SWOT_LABELS[quadrant], data.get(quadrant))


def _render_porter(data: Dict[str, Any]):
    forces = [f for f in data.get('forces') or [] if isinstance(f, dict)]
    if forces:
        render_porter_chart(data)
        for force in forces:
            st.markdown(f"**{force.get('force', '—')}** ({force.get('intensity', '—')}): "
                        f"{force.get('description', '')}")
    if data.get('overallAttractiveness'):
        st.markdown(f"**Atratividade geral:** {data['overallAttractiveness']}")


def render_framework_content(spec: FrameworkSpec, data: Any):
    """Body of one framework expander."""
    if not isinstance(data, dict):
        _render_value(spec.label, data)
        return
    summary = data.get('summary') or data.get('executiveSummary')
    if summary:
        st.markdown(f"_{summary}_")
    if spec.key == 'swot':
        _render_swot(data)
        return
    if spec.key == 'porter':
        _render_porter(data)
    skip = {'summary', 'executiveSummary', 'forces', 'overallAttractiveness'} if spec.key == 'porter' \
        else {'summary', 'executiveSummary'}
    for key, value in data.items():
        if key not in skip:
            _render_value(key, value)


# =============================================================================
# CARD / DETAILS
# =============================================================================

def render_analysis_card(analysis: Analysis):
    """Summary metrics of an analysis."""
    present = sum(1 for spec in FRAMEWORKS if has_framework_data(analysis.analysis, spec.key))
    metric_row([
        {'label': "Status", 'value': analysis.status.value},
        {'label': "Versão", 'value': f"v{analysis.version}"},
        {'label': "Frameworks", 'value': f"{present}/{len(FRAMEWORKS)}"},
        {'label': "Atualizado", 'value': format_date(analysis.updated_at or analysis.created_at)},
    ])
    st.markdown(status_badge(analysis.status.value), unsafe_allow_html=True)


def render_analysis_details(analysis: Analysis, is_admin: bool = True, has_paid: bool = False):
    """
    One expander per present framework, in navigation order.

    Args:
        analysis: Analysis record
        is_admin: Admins always see everything
        has_paid: Paying users see everything
    """
    shown = 0
    for spec in FRAMEWORKS:
        if not has_framework_data(analysis.analysis, spec.key):
            continue
        view = apply_access_policy(analysis, spec.key, is_admin=is_admin, has_paid=has_paid)
        icon = "🔒 " if view.access_level == ACCESS_LOCKED else ""
        with st.expander(f"{icon}{spec.label}", expanded=shown == 0):
            if view.data:
                render_framework_content(spec, view.data)
            if view.teaser and view.access_level in (ACCESS_PARTIAL, ACCESS_LOCKED):
                info_card("Conteúdo Premium", view.teaser, icon="✨", variant='gold')
        shown += 1
    if not shown:
        no_data_yet("A análise ainda não contém frameworks.")


def _render_admin_status(analysis: Optional[Analysis]) -> bool:
    """Status messages for analyses not ready for review; True when content can be shown."""
    if analysis is None or analysis.status == AnalysisStatus.PENDING:
        no_data_yet(ADMIN_WAITING_MESSAGE)
        return False
    if analysis.status == AnalysisStatus.GENERATING:
        st.info("⏳ Análise em geração. Atualize a página em alguns instantes.")
        return False
    if analysis.status == AnalysisStatus.FAILED:
        show_error("A geração da análise falhou", analysis.error_message)
        return False
    return True


def render_analysis_panel(
    snapshot: WorkflowSnapshot,
    is_admin: bool = True,
    analysis_service=None,
    report_service=None,
):
    """
    Render the analysis part of the workflow view.

    Users see a progress message until the report is approved and visible.
    Admins see the details, and the War Room editor while the analysis is
    under review.
    """
    analysis = snapshot.analysis

    if not is_admin:
        content = snapshot.stage_content(is_admin=False)
        if not content.show_analysis or analysis is None:
            st.markdown(f'''
            <div style="text-align: center; padding: 2rem; color: {COLORS['text_tertiary']};">
                <div style="font-size: 2rem;">⏳</div>
                <div style="color: {COLORS['text_primary']}; font-weight: 600;">Sua análise está sendo preparada</div>
                <div>{escape("Você será avisado quando o relatório estiver disponível.")}</div>
            </div>
            ''', unsafe_allow_html=True)
            return
        render_analysis_details(analysis, is_admin=False)
        if report_service is not None:
            with st.expander("📄 Ver Relatório", expanded=False):
                render_report_preview(
                    report_service, analysis, snapshot.submission,
                    frameworks=report_service.visible_frameworks(analysis),
                    key_prefix=f"user_{analysis.id}",
                )
        return

    if not _render_admin_status(analysis):
        return

    render_analysis_card(analysis)
    content = snapshot.stage_content(is_admin=True)

    if content.analysis_editable and analysis_service is not None:
        tab_details, tab_editor = st.tabs(["📊 Detalhes", "✏️ War Room"])
        with tab_details:
            render_analysis_details(analysis)
        with tab_editor:
            render_war_room_editor(analysis, snapshot.submission, analysis_service, report_service)
        return

    render_analysis_details(analysis)
    if content.show_report_button and report_service is not None:
        with st.expander("📄 Pré-visualizar Relatório", expanded=False):
            render_report_preview(report_service, analysis, snapshot.submission, key_prefix=f"admin_{analysis.id}")
