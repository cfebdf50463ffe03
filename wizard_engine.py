"""
Imensiah - Wizard Step Sequencer
================================
Walks a company through the twelve framework steps of a guided analysis.

Per-step lifecycle:

    pending -> generating -> generated -> approved
                         \\-> failed -> (retry | refine) -> generating

Generation itself happens on the backend; the controller here only decides
which actions are legal, keeps the client-side view consistent, and records
failures. Approving the last step completes the wizard instead of
advancing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from backend_client import BackendError

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    GENERATED = "generated"
    APPROVED = "approved"
    FAILED = "failed"


@dataclass(frozen=True)
class WizardStep:
    step: int
    code: str
    name: str


WIZARD_STEPS: Tuple[WizardStep, ...] = (
    WizardStep(1, "challenge_refinement", "Refinamento do Desafio"),
    WizardStep(2, "pestel", "PESTEL"),
    WizardStep(3, "porter", "Porter 7 Forças"),
    WizardStep(4, "benchmarking", "Benchmarking"),
    WizardStep(5, "swot", "SWOT"),
    WizardStep(6, "tam_sam_som", "TAM-SAM-SOM"),
    WizardStep(7, "blue_ocean", "Blue Ocean"),
    WizardStep(8, "growth_loops", "Growth Loops"),
    WizardStep(9, "scenarios", "Cenários"),
    WizardStep(10, "decision_matrix", "Matriz de Decisão"),
    WizardStep(11, "okrs_90_days", "Plano 90 Dias"),
    WizardStep(12, "bsc", "BSC"),
)

TOTAL_STEPS = len(WIZARD_STEPS)


class InvalidWizardAction(ValueError):
    """Raised when an action is not legal in the current step status."""


class WizardBusy(RuntimeError):
    """Raised when an action is attempted while another is in flight."""


@dataclass(frozen=True)
class WizardStepSummary:
    step: int
    framework_code: str
    framework_name: str
    status: str
    approved_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "WizardStepSummary":
        return cls(
            step=int(payload.get("step") or 0),
            framework_code=payload.get("framework_code") or "",
            framework_name=payload.get("framework_name") or "",
            status=payload.get("status") or StepStatus.APPROVED.value,
            approved_at=payload.get("approved_at"),
        )


@dataclass
class WizardState:
    analysis_id: str
    current_step: int = 1
    total_steps: int = TOTAL_STEPS
    framework: Dict[str, Any] = field(default_factory=dict)
    step_status: StepStatus = StepStatus.PENDING
    output: Optional[Dict[str, Any]] = None
    human_context: Optional[str] = None
    human_answers: Dict[str, str] = field(default_factory=dict)
    previous_steps: List[WizardStepSummary] = field(default_factory=list)
    iteration_count: int = 0
    error_message: Optional[str] = None
    is_complete: bool = False

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "WizardState":
        try:
            status = StepStatus(payload.get("step_status") or StepStatus.PENDING.value)
        except ValueError:
            logger.warning("Unknown wizard step status: %r", payload.get("step_status"))
            status = StepStatus.PENDING
        return cls(
            analysis_id=str(payload.get("analysis_id") or ""),
            current_step=int(payload.get("current_step") or 1),
            total_steps=int(payload.get("total_steps") or TOTAL_STEPS),
            framework=payload.get("framework") or {},
            step_status=status,
            output=payload.get("output"),
            human_context=payload.get("human_context"),
            human_answers=payload.get("human_answers") or {},
            previous_steps=[
                WizardStepSummary.from_payload(p) for p in payload.get("previous_steps") or []
            ],
            iteration_count=int(payload.get("iteration_count") or 0),
            error_message=payload.get("error_message"),
        )

    @property
    def is_last_step(self) -> bool:
        return self.current_step >= self.total_steps

    @property
    def step(self) -> WizardStep:
        index = min(max(self.current_step, 1), len(WIZARD_STEPS)) - 1
        return WIZARD_STEPS[index]

    @property
    def framework_name(self) -> str:
        return self.framework.get("name") or self.step.name

    @property
    def framework_code(self) -> str:
        return self.framework.get("code") or self.step.code

    @property
    def questions(self) -> List[Dict[str, Any]]:
        return list(self.framework.get("questions") or [])


def merge_previous_steps(
    existing: List[WizardStepSummary],
    incoming: List[WizardStepSummary],
) -> List[WizardStepSummary]:
    """Append-only merge keyed by step number; known entries are never dropped."""
    known = {s.step for s in existing}
    merged = list(existing)
    for summary in incoming:
        if summary.step not in known:
            merged.append(summary)
            known.add(summary.step)
    return sorted(merged, key=lambda s: s.step)


class WizardController:
    """
    Client-side state machine for one wizard run.

    Args:
        client: Object exposing get_wizard_state, generate_step, approve_step
            and refine_step (see backend_client.BackendClient).
        state: Current wizard snapshot.
    """

    def __init__(self, client, state: WizardState):
        self.client = client
        self.state = state
        self.is_busy = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def approve_label(self) -> str:
        return "Finalizar" if self.state.is_last_step else "Aprovar e Continuar"

    def can_generate(self) -> bool:
        return not self.is_busy and self.state.step_status == StepStatus.PENDING

    def can_approve(self) -> bool:
        return not self.is_busy and self.state.step_status == StepStatus.GENERATED

    def can_refine(self) -> bool:
        return not self.is_busy and self.state.step_status in (StepStatus.GENERATED, StepStatus.FAILED)

    def can_retry(self) -> bool:
        return not self.is_busy and self.state.step_status == StepStatus.FAILED

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def refresh(self) -> WizardState:
        """Pull the server snapshot (used while a step is generating)."""
        payload = self.client.get_wizard_state(self.state.analysis_id)
        self._adopt(WizardState.from_payload(payload))
        return self.state

    def generate(
        self,
        human_context: Optional[str] = None,
        human_answers: Optional[Dict[str, str]] = None,
    ) -> WizardState:
        self._require(self.state.step_status == StepStatus.PENDING, "generate")
        return self._run_generation(human_context, human_answers or {})

    def retry(self) -> WizardState:
        self._require(self.state.step_status == StepStatus.FAILED, "retry")
        return self._run_generation(self.state.human_context, dict(self.state.human_answers))

    def refine(self, feedback: str) -> WizardState:
        self._require(
            self.state.step_status in (StepStatus.GENERATED, StepStatus.FAILED), "refine"
        )
        if not feedback or not feedback.strip():
            raise InvalidWizardAction("Refinement needs feedback text")

        iteration = self.state.iteration_count + 1
        self._begin()
        try:
            payload = self.client.refine_step(self.state.analysis_id, feedback.strip())
        except BackendError as e:
            self._fail(e, iteration_count=iteration)
        else:
            incoming = WizardState.from_payload(payload)
            incoming.iteration_count = max(incoming.iteration_count, iteration)
            self._adopt(incoming)
        finally:
            self.is_busy = False
        return self.state

    def approve(self) -> WizardState:
        self._require(self.state.step_status == StepStatus.GENERATED, "approve")
        was_last = self.state.is_last_step
        current = self.state
        self.is_busy = True
        try:
            payload = self.client.approve_step(current.analysis_id)
        finally:
            self.is_busy = False

        summary = WizardStepSummary(
            step=current.current_step,
            framework_code=current.framework_code,
            framework_name=current.framework_name,
            status=StepStatus.APPROVED.value,
            approved_at=datetime.now(timezone.utc).isoformat(),
        )
        if was_last:
            self.state = replace(
                current,
                step_status=StepStatus.APPROVED,
                previous_steps=merge_previous_steps(current.previous_steps, [summary]),
                is_complete=True,
            )
            logger.info("Wizard %s completed", current.analysis_id)
            return self.state

        incoming = WizardState.from_payload(payload or {})
        next_step = current.current_step + 1
        if incoming.current_step < next_step:
            # The approval stands; an empty or stale reply must not move the wizard back
            logger.warning("Approve reply for %s reported step %s; moving to step %s",
                           current.analysis_id, incoming.current_step, next_step)
            incoming = WizardState(
                analysis_id=current.analysis_id,
                current_step=next_step,
                total_steps=current.total_steps,
            )
        incoming.previous_steps = merge_previous_steps(incoming.previous_steps, [summary])
        self._adopt(incoming)
        return self.state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, condition: bool, action: str) -> None:
        if self.is_busy:
            raise WizardBusy(f"Cannot {action} while another action is running")
        if not condition:
            raise InvalidWizardAction(
                f"Cannot {action} step {self.state.current_step} in status "
                f"'{self.state.step_status.value}'"
            )

    def _begin(self) -> None:
        self.is_busy = True
        self.state = replace(self.state, step_status=StepStatus.GENERATING, error_message=None)

    def _run_generation(self, human_context: Optional[str], human_answers: Dict[str, str]) -> WizardState:
        self._begin()
        self.state = replace(self.state, human_context=human_context, human_answers=human_answers)
        try:
            payload = self.client.generate_step(self.state.analysis_id, human_context, human_answers)
        except BackendError as e:
            self._fail(e)
        else:
            self._adopt(WizardState.from_payload(payload))
        finally:
            self.is_busy = False
        return self.state

    def _fail(self, error: Exception, **changes: Any) -> None:
        logger.error("Wizard step %s failed for %s: %s",
                     self.state.current_step, self.state.analysis_id, error)
        self.state = replace(
            self.state,
            step_status=StepStatus.FAILED,
            error_message=str(error),
            **changes,
        )

    def _adopt(self, incoming: WizardState) -> None:
        # Inputs are kept when the server omits them so a retry can resend them
        incoming.human_context = incoming.human_context or self.state.human_context
        incoming.human_answers = incoming.human_answers or self.state.human_answers
        incoming.analysis_id = incoming.analysis_id or self.state.analysis_id
        incoming.previous_steps = merge_previous_steps(self.state.previous_steps, incoming.previous_steps)
        if incoming.current_step == self.state.current_step:
            incoming.iteration_count = max(incoming.iteration_count, self.state.iteration_count)
        incoming.is_complete = incoming.is_complete or self.state.is_complete
        self.state = incoming
