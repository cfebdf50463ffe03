"""
Workflow Progress Bar
=====================
Stage progress indicator with the admin stage-change flow.

Admins can click a stage to request a move. The request goes through
StageChangeFlow:

    idle -> selected -> confirming -> applying -> idle
              ^            |
              +- cancel ---+

The displayed stage always comes from the fetched workflow records, never
from the flow.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

import streamlit as st

from backend_client import BackendError
from components.ui_components import show_error, show_warning
from linear_theme import COLORS, escape
from services.session_manager import SessionManager
from services.workflow_service import StageChangeRejected, TransitionInProgress, WorkflowSnapshot
from workflow_stages import (
    ADMIN_STAGES,
    USER_STAGES,
    StageConfig,
    StageTransition,
    can_move_to_stage,
    get_stage_config,
    get_stage_transition,
)

logger = logging.getLogger(__name__)

AUTOMATIC_MESSAGE = "Esta mudança acontecerá automaticamente quando o processamento terminar."

DOT_COLORS = {
    'completed': COLORS['success'],
    'current': COLORS['accent_gold'],
    'future': '#71717A',
}
DOT_ICONS = {'completed': "✅", 'current': "→", 'future': "○"}


class FlowState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    CONFIRMING = "confirming"
    APPLYING = "applying"


class StageChangeFlow:
    """Selection and confirmation state for one submission's stage changes."""

    def __init__(self):
        self.state = FlowState.IDLE
        self.selected_stage: Optional[int] = None
        self.pending_transition: Optional[StageTransition] = None

    @property
    def is_loading(self) -> bool:
        return self.state == FlowState.APPLYING

    @property
    def dialog_open(self) -> bool:
        return self.state in (FlowState.CONFIRMING, FlowState.APPLYING)

    @property
    def is_backward(self) -> bool:
        return bool(self.pending_transition and self.pending_transition.is_backward)

    def select(self, target_stage: int, current_stage: int, enrichment_status, analysis_status) -> Optional[str]:
        """
        Arm a stage move.

        Returns:
            None when the stage is now selected, otherwise the rejection
            reason (the flow is left unchanged)
        """
        if self.is_loading:
            return "Aguarde a conclusão da mudança em andamento"
        reason = can_move_to_stage(current_stage, target_stage, enrichment_status, analysis_status)
        if reason:
            logger.warning("Stage %s -> %s not allowed: %s", current_stage, target_stage, reason)
            return reason
        self.state = FlowState.SELECTED
        self.selected_stage = target_stage
        self.pending_transition = None
        return None

    def apply(self, current_stage: int, enrichment_status, analysis_status) -> Optional[StageTransition]:
        """
        Look up the action for the selected move and open the confirmation.

        The move is checked again against the current statuses; a selection
        that is no longer allowed is cleared and StageChangeRejected raised.

        Returns:
            The transition to confirm, or None for a move the backend makes on
            its own (the selection is cleared and nothing is called)
        """
        if self.state != FlowState.SELECTED or self.selected_stage is None:
            raise RuntimeError("No stage selected")
        reason = can_move_to_stage(current_stage, self.selected_stage, enrichment_status, analysis_status)
        if reason:
            logger.warning("Selected stage %s -> %s no longer allowed: %s",
                           current_stage, self.selected_stage, reason)
            self.clear()
            raise StageChangeRejected(reason)
        transition = get_stage_transition(current_stage, self.selected_stage)
        if transition is None:
            logger.info("Stage %s -> %s is automatic", current_stage, self.selected_stage)
            self.clear()
            return None
        self.pending_transition = transition
        self.state = FlowState.CONFIRMING
        return transition

    def cancel(self) -> None:
        """Close the confirmation, keeping the selection."""
        if self.state == FlowState.CONFIRMING:
            self.state = FlowState.SELECTED
            self.pending_transition = None

    def confirm(self, on_stage_change: Callable[[int], None]) -> None:
        """
        Run the stage change once.

        On success the flow returns to idle. On failure the dialog closes, the
        selection stays, and the exception is re-raised.
        """
        if self.state != FlowState.CONFIRMING or self.selected_stage is None:
            raise RuntimeError("Nothing to confirm")
        target = self.selected_stage
        self.state = FlowState.APPLYING
        try:
            on_stage_change(target)
        except Exception:
            self.state = FlowState.SELECTED
            self.pending_transition = None
            raise
        self.clear()

    def clear(self) -> None:
        self.state = FlowState.IDLE
        self.selected_stage = None
        self.pending_transition = None


def get_stage_flow(submission_id: str) -> StageChangeFlow:
    return SessionManager.get_or_create(f"{SessionManager.STAGE_FLOW_PREFIX}{submission_id}", StageChangeFlow)


# =============================================================================
# RENDERING
# =============================================================================

def dot_state(stage: int, current_stage: int) -> str:
    if stage < current_stage:
        return 'completed'
    if stage == current_stage:
        return 'current'
    return 'future'


def render_progress_dot(config: StageConfig, state: str, selected: bool = False) -> str:
    """HTML for one stage dot with its label."""
    color = DOT_COLORS[state]
    ring = f"box-shadow: 0 0 0 3px {COLORS['accent_gold_muted']};" if selected else ""
    weight = 600 if state == 'current' else 400
    return f'''
    <div style="display: flex; flex-direction: column; align-items: center; min-width: 80px;">
        <div style="width: 28px; height: 28px; border-radius: 50%; border: 2px solid {color};
            background: {color if state != 'future' else 'transparent'}; color: {COLORS['bg_base']};
            display: flex; align-items: center; justify-content: center; font-size: 0.75rem; {ring}">
            {'✓' if state == 'completed' else config.stage}</div>
        <div style="margin-top: 0.375rem; font-size: 0.75rem; color: {color}; font-weight: {weight}; text-align: center;">
            {escape(config.label)}</div>
    </div>
    '''


def render_progress_connector(completed: bool) -> str:
    color = COLORS['success'] if completed else COLORS['border_default']
    return f'<div style="flex: 1; height: 2px; background: {color}; margin: 14px 4px 0 4px;"></div>'


def _progress_strip(stages: List[StageConfig], current_stage: int, selected: Optional[int]) -> str:
    parts = []
    for i, config in enumerate(stages):
        if i:
            parts.append(render_progress_connector(config.stage <= current_stage))
        parts.append(render_progress_dot(config, dot_state(config.stage, current_stage), config.stage == selected))
    return f'<div style="display: flex; align-items: flex-start; margin: 0.5rem 0 1rem 0;">{"".join(parts)}</div>'


@st.dialog("Confirmar Mudança de Estágio")
def render_stage_change_dialog(flow: StageChangeFlow, from_stage: int, on_stage_change: Callable[[int], None]):
    """Confirmation dialog listing what the pending stage change will do."""
    transition = flow.pending_transition
    if transition is None:
        st.rerun()
        return

    from_label = get_stage_config(from_stage).label
    to_label = get_stage_config(transition.to_stage).label
    st.markdown(f"**{from_label}** → **{to_label}**")
    st.caption(transition.description)

    heading = "⚠️ Atenção:" if flow.is_backward else "O que vai acontecer:"
    bullets = "\n".join(f"- {c}" for c in transition.consequences)
    if flow.is_backward:
        st.warning(f"**{heading}**\n\n{bullets}")
    else:
        st.info(f"**{heading}**\n\n{bullets}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Cancelar", key="stage_dialog_cancel", use_container_width=True, disabled=flow.is_loading):
            flow.cancel()
            st.rerun()
    with col2:
        label = "Aplicando..." if flow.is_loading else "Aplicar Mudança"
        if st.button(label, key="stage_dialog_confirm", type="primary", use_container_width=True,
                     disabled=flow.is_loading):
            try:
                with st.spinner("Aplicando..."):
                    flow.confirm(on_stage_change)
            except (BackendError, StageChangeRejected, TransitionInProgress) as e:
                SessionManager.set("stage_change_error", str(e))
            st.rerun()


def render_progress_bar(
    snapshot: WorkflowSnapshot,
    is_admin: bool,
    on_stage_change: Optional[Callable[[int], None]] = None,
    key_prefix: str = "progress",
):
    """
    Render the workflow progress bar.

    Args:
        snapshot: Current workflow records
        is_admin: Admins see six clickable stages, users see three
        on_stage_change: Callback applying a confirmed move (admin only)
        key_prefix: Prefix for Streamlit keys to avoid duplicates
    """
    stages = ADMIN_STAGES if is_admin else USER_STAGES
    current = snapshot.admin_stage if is_admin else snapshot.user_stage

    if not is_admin or on_stage_change is None:
        st.markdown(_progress_strip(list(stages), current, None), unsafe_allow_html=True)
        config = stages[current - 1]
        st.caption(f"{config.icon} {config.description}")
        return

    flow = get_stage_flow(snapshot.submission.id)
    st.markdown(_progress_strip(list(stages), current, flow.selected_stage), unsafe_allow_html=True)

    error = SessionManager.get("stage_change_error")
    if error:
        show_error("Não foi possível mudar o estágio", error)
        SessionManager.delete("stage_change_error")

    cols = st.columns(len(stages))
    for idx, config in enumerate(stages):
        with cols[idx]:
            state = dot_state(config.stage, current)
            is_selected = flow.selected_stage == config.stage
            if st.button(
                f"{DOT_ICONS[state]} {config.label}",
                key=f"{key_prefix}_{snapshot.submission.id}_stage_{config.stage}",
                use_container_width=True,
                type="primary" if (config.stage == current or is_selected) else "secondary",
                disabled=flow.is_loading,
            ):
                reason = flow.select(config.stage, current, snapshot.enrichment_status, snapshot.analysis_status)
                if reason:
                    show_warning(reason)
                else:
                    st.rerun()

    if flow.state == FlowState.SELECTED and flow.selected_stage is not None:
        target = get_stage_config(flow.selected_stage)
        st.caption(f"Estágio selecionado: **{target.label}**")
        col1, col2, _ = st.columns([1, 1, 3])
        with col1:
            if st.button("Aplicar Mudança", key=f"{key_prefix}_{snapshot.submission.id}_apply", type="primary"):
                try:
                    transition = flow.apply(current, snapshot.enrichment_status, snapshot.analysis_status)
                except StageChangeRejected as e:
                    show_warning(e.reason)
                else:
                    if transition is None:
                        st.info(AUTOMATIC_MESSAGE)
                    else:
                        st.rerun()
        with col2:
            if st.button("Cancelar", key=f"{key_prefix}_{snapshot.submission.id}_cancel"):
                flow.clear()
                st.rerun()

    if flow.dialog_open:
        render_stage_change_dialog(flow, current, on_stage_change)
