"""
Guided Analysis Wizard
======================
Twelve-step assistant: each step generates one framework, which the admin
refines until satisfied and then approves.
"""

import logging
from typing import Dict

import pandas as pd
import streamlit as st

from backend_client import BackendError
from components.ui_components import progress_indicator, show_error, show_success
from linear_theme import escape, format_date
from services.session_manager import SessionManager
from wizard_engine import (
    WIZARD_STEPS,
    InvalidWizardAction,
    StepStatus,
    WizardBusy,
    WizardController,
    WizardState,
)

logger = logging.getLogger(__name__)

STEP_ICONS = {
    StepStatus.APPROVED: "✅",
    StepStatus.GENERATED: "📝",
    StepStatus.GENERATING: "⏳",
    StepStatus.FAILED: "❌",
    StepStatus.PENDING: "○",
}


def _controller_key(submission_id: str) -> str:
    return f"{SessionManager.WIZARD_PREFIX}{submission_id}"


def start_wizard(backend, submission_id: str, challenge_id: str = None) -> WizardController:
    """Create a wizard run on the backend and keep its controller in session."""
    analysis_id = backend.start_wizard(submission_id, challenge_id or submission_id)
    state = WizardState.from_payload(backend.get_wizard_state(analysis_id))
    controller = WizardController(backend, state)
    SessionManager.set(_controller_key(submission_id), controller)
    logger.info("Started wizard %s for submission %s", analysis_id, submission_id)
    return controller


def steps_frame(state: WizardState) -> pd.DataFrame:
    """One row per step with its status, for the overview table."""
    approved = {s.step: s for s in state.previous_steps}
    rows = []
    for spec in WIZARD_STEPS:
        if spec.step in approved:
            status = StepStatus.APPROVED
        elif spec.step == state.current_step:
            status = state.step_status
        else:
            status = StepStatus.PENDING
        summary = approved.get(spec.step)
        rows.append({
            'Etapa': spec.step,
            'Framework': spec.name,
            'Status': f"{STEP_ICONS[status]} {status.value}",
            'Aprovado em': format_date(summary.approved_at, with_time=True) if summary else '—',
        })
    return pd.DataFrame(rows)


def _render_step_inputs(controller: WizardController, key: str):
    state = controller.state
    answers: Dict[str, str] = {}
    for i, question in enumerate(state.questions):
        qid = str(question.get('id') or i)
        answers[qid] = st.text_input(
            question.get('question') or qid,
            value=state.human_answers.get(qid, ''),
            key=f"{key}_q_{qid}",
        )
    context = st.text_area(
        "Contexto adicional (opcional)",
        value=state.human_context or '',
        key=f"{key}_context",
        height=80,
    )
    if st.button("⚙️ Gerar", key=f"{key}_generate", type="primary", disabled=not controller.can_generate()):
        with st.spinner(f"Gerando {state.framework_name}..."):
            controller.generate(context.strip() or None, {k: v for k, v in answers.items() if v})
        st.rerun()


def _render_refine(controller: WizardController, key: str):
    feedback = st.text_area("O que deve ser ajustado?", key=f"{key}_feedback", height=80)
    if st.button("🔁 Refinar", key=f"{key}_refine", disabled=not controller.can_refine()):
        try:
            with st.spinner("Refinando..."):
                controller.refine(feedback)
        except InvalidWizardAction:
            st.warning("Descreva o ajuste desejado antes de refinar.")
        else:
            st.rerun()


def render_wizard(backend, submission_id: str, company_name: str = ""):
    """
    Render the wizard for a submission.

    Args:
        backend: BackendClient or InMemoryBackend
        submission_id: Company submission the analysis belongs to
        company_name: Display name
    """
    controller: WizardController = SessionManager.get(_controller_key(submission_id))
    if controller is None:
        st.markdown(f"Análise guiada em {len(WIZARD_STEPS)} etapas para **{escape(company_name)}**.")
        if st.button("🚀 Iniciar Assistente", key=f"wizard_start_{submission_id}", type="primary"):
            try:
                start_wizard(backend, submission_id)
            except BackendError as e:
                show_error("Não foi possível iniciar o assistente", str(e))
            else:
                st.rerun()
        return

    state = controller.state
    key = f"wizard_{state.analysis_id}_{state.current_step}_{state.iteration_count}"
    done = len(state.previous_steps)
    progress_indicator(done / state.total_steps, label=f"Etapa {state.current_step} de {state.total_steps}")

    with st.expander("Visão geral das etapas", expanded=state.is_complete):
        st.dataframe(steps_frame(state), hide_index=True, use_container_width=True)

    if state.is_complete:
        show_success("Assistente concluído", f"{done} frameworks aprovados.")
        try:
            summary = backend.get_wizard_summary(state.analysis_id)
        except BackendError as e:
            show_error("Não foi possível carregar o resumo", str(e))
        else:
            st.caption(f"{summary.get('completed_steps', done)} de {summary.get('total_steps', state.total_steps)} etapas concluídas")
        if st.button("Reiniciar", key=f"{key}_restart"):
            SessionManager.delete(_controller_key(submission_id))
            st.rerun()
        return

    st.markdown(f"### {STEP_ICONS[state.step_status]} {state.framework_name}")
    if state.framework.get('description'):
        st.caption(state.framework['description'])
    if state.iteration_count:
        st.caption(f"Iteração {state.iteration_count}")

    status = state.step_status
    if status == StepStatus.PENDING:
        _render_step_inputs(controller, key)
    elif status == StepStatus.GENERATING:
        st.info("⏳ Gerando esta etapa...")
        if st.button("Atualizar", key=f"{key}_refresh"):
            try:
                controller.refresh()
            except BackendError as e:
                show_error("Erro ao atualizar", str(e))
            st.rerun()
    elif status == StepStatus.FAILED:
        show_error("A geração falhou", state.error_message)
        if st.button("↻ Tentar novamente", key=f"{key}_retry", type="primary", disabled=not controller.can_retry()):
            with st.spinner("Gerando novamente..."):
                controller.retry()
            st.rerun()
        _render_refine(controller, key)
    elif status == StepStatus.GENERATED:
        st.json(state.output or {})
        _render_refine(controller, key)
        if st.button(controller.approve_label, key=f"{key}_approve", type="primary",
                     disabled=not controller.can_approve()):
            try:
                controller.approve()
            except (BackendError, WizardBusy) as e:
                show_error("Não foi possível aprovar a etapa", str(e))
            else:
                st.rerun()
