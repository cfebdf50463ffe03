"""
Workflow Service
================
Business logic for the submission → enrichment → analysis → release workflow.

Loads a submission's records, derives its stage, and applies admin stage
changes through the backend. The stage itself is always recomputed from
fetched statuses; nothing here stores it.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from analysis_schema import (
    Analysis,
    Enrichment,
    Submission,
    parse_analysis,
    parse_enrichment,
    parse_submission,
)
from pagination import fetch_all_pages
from workflow_stages import (
    APPROVE_ANALYSIS,
    APPROVE_ENRICHMENT,
    REOPEN_ANALYSIS,
    REOPEN_ENRICHMENT,
    TOGGLE_VISIBILITY,
    StageContent,
    StageTransition,
    can_move_to_stage,
    compute_admin_stage,
    compute_user_stage,
    get_admin_stage_content,
    get_stage_transition,
    get_user_stage_content,
)

logger = logging.getLogger(__name__)


class StageChangeRejected(ValueError):
    """The requested stage move is not allowed right now."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TransitionInProgress(RuntimeError):
    """Another stage change for the same submission is still running."""


_in_flight: set = set()
_in_flight_lock = threading.Lock()


@contextmanager
def _single_flight(submission_id: str):
    with _in_flight_lock:
        if submission_id in _in_flight:
            raise TransitionInProgress(
                f"Uma mudança de estágio já está em andamento para {submission_id}"
            )
        _in_flight.add(submission_id)
    try:
        yield
    finally:
        with _in_flight_lock:
            _in_flight.discard(submission_id)


@dataclass(frozen=True)
class WorkflowSnapshot:
    """One fetch of a submission's workflow records."""
    submission: Submission
    enrichment: Optional[Enrichment] = None
    analysis: Optional[Analysis] = None

    @property
    def enrichment_status(self) -> Optional[str]:
        return self.enrichment.status.value if self.enrichment else None

    @property
    def analysis_status(self) -> Optional[str]:
        return self.analysis.status.value if self.analysis else None

    @property
    def is_visible_to_user(self) -> bool:
        return bool(self.analysis and self.analysis.is_visible_to_user)

    @property
    def admin_stage(self) -> int:
        return compute_admin_stage(self.enrichment_status, self.analysis_status, self.is_visible_to_user)

    @property
    def user_stage(self) -> int:
        return compute_user_stage(self.enrichment_status, self.analysis_status, self.is_visible_to_user)

    def stage_content(self, is_admin: bool) -> StageContent:
        if is_admin:
            return get_admin_stage_content(self.admin_stage)
        return get_user_stage_content(self.user_stage, self.is_visible_to_user)


class WorkflowService:
    """
    Service for workflow business logic.

    Handles loading workflow records, validating and applying stage
    changes, and the release controls (blur, share links).
    """

    def __init__(self, backend):
        """
        Initialize workflow service.

        Args:
            backend: BackendClient (or InMemoryBackend in demo mode)
        """
        self.backend = backend

    def list_submissions(self, max_rows: Optional[int] = 500) -> List[Submission]:
        """
        List every submission visible to the admin.

        Args:
            max_rows: Safety cap on the number of rows fetched

        Returns:
            Parsed submissions, newest first when the backend provides dates
        """
        rows = fetch_all_pages(self.backend.list_submissions, page_size=50, max_rows=max_rows)
        submissions = [parse_submission(row) for row in rows]
        return sorted(
            submissions,
            key=lambda s: s.created_at.timestamp() if s.created_at else 0,
            reverse=True,
        )

    def load(self, submission_id: str) -> WorkflowSnapshot:
        """
        Fetch and normalize a submission with its enrichment and analysis.

        Args:
            submission_id: Submission ID

        Returns:
            WorkflowSnapshot
        """
        submission, enrichment, analysis = self.backend.get_workflow(submission_id)
        return WorkflowSnapshot(
            submission=parse_submission(submission),
            enrichment=parse_enrichment(enrichment),
            analysis=parse_analysis(analysis),
        )

    def validate_stage_change(self, snapshot: WorkflowSnapshot, target_stage: int) -> Optional[str]:
        """Reason the move is rejected, or None when it is allowed."""
        return can_move_to_stage(
            snapshot.admin_stage, target_stage, snapshot.enrichment_status, snapshot.analysis_status
        )

    def change_stage(self, snapshot: WorkflowSnapshot, target_stage: int) -> Optional[StageTransition]:
        """
        Apply an admin stage change.

        Args:
            snapshot: Freshly loaded workflow records
            target_stage: Admin stage to move to

        Returns:
            The applied transition, or None when the move happens on its own
            once background processing completes

        Raises:
            StageChangeRejected: If the move is not allowed
            TransitionInProgress: If a change for this submission is running
            BackendError: If the backend call fails
        """
        reason = self.validate_stage_change(snapshot, target_stage)
        if reason:
            logger.warning("Stage change %s -> %s rejected for %s: %s",
                           snapshot.admin_stage, target_stage, snapshot.submission.id, reason)
            raise StageChangeRejected(reason)

        transition = get_stage_transition(snapshot.admin_stage, target_stage)
        if transition is None:
            logger.info("Stage %s -> %s for %s is automatic; nothing to apply",
                        snapshot.admin_stage, target_stage, snapshot.submission.id)
            return None

        with _single_flight(snapshot.submission.id):
            self._apply(snapshot, transition)
        logger.info("Applied %s (%s -> %s) for %s", transition.action,
                    transition.from_stage, transition.to_stage, snapshot.submission.id)
        return transition

    def _apply(self, snapshot: WorkflowSnapshot, transition: StageTransition) -> Any:
        action = transition.action
        if action in (APPROVE_ENRICHMENT, REOPEN_ENRICHMENT):
            if snapshot.enrichment is None:
                raise StageChangeRejected("Não há enriquecimento para esta submissão")
            if action == APPROVE_ENRICHMENT:
                return self.backend.approve_enrichment(snapshot.enrichment.id)
            return self.backend.reopen_enrichment(snapshot.enrichment.id)

        if snapshot.analysis is None:
            raise StageChangeRejected("Não há análise para esta submissão")
        if action == APPROVE_ANALYSIS:
            return self.backend.approve_analysis(snapshot.analysis.id)
        if action == REOPEN_ANALYSIS:
            if snapshot.analysis.is_visible_to_user:
                self.backend.set_visibility(snapshot.analysis.id, False)
            return self.backend.reopen_analysis(snapshot.analysis.id)
        if action == TOGGLE_VISIBILITY:
            return self.backend.set_visibility(snapshot.analysis.id, bool(transition.params.get("visible")))
        raise ValueError(f"Unknown stage action: {action}")

    # ------------------------------------------------------------------
    # Release controls
    # ------------------------------------------------------------------

    @staticmethod
    def can_share(analysis: Optional[Analysis]) -> bool:
        """Blur toggle and share link are only offered once the report is released."""
        return bool(analysis and analysis.is_released)

    def toggle_blur(self, analysis: Analysis) -> bool:
        """
        Flip the premium blur of a released analysis.

        Returns:
            The new is_blurred value
        """
        if not self.can_share(analysis):
            raise StageChangeRejected("O relatório precisa estar aprovado e liberado")
        blurred = not analysis.is_blurred
        self.backend.set_blur(analysis.id, blurred)
        logger.info("Analysis %s blur set to %s", analysis.id, blurred)
        return blurred

    def get_share_url(self, analysis: Analysis, origin: str) -> str:
        """
        Public report link, reusing the existing access code when there is one.

        Args:
            analysis: Released analysis
            origin: Public base URL of the report server

        Returns:
            "{origin}/report/{code}"
        """
        if not self.can_share(analysis):
            raise StageChangeRejected("O relatório precisa estar aprovado e liberado")
        code = analysis.access_code or self.backend.generate_access_code(analysis.id)
        return f"{origin.rstrip('/')}/report/{code}"

    def update_enrichment(self, enrichment: Enrichment, data: Dict[str, Any]) -> Any:
        """Save admin edits to an enrichment still open for review."""
        if enrichment.status.value != "completed":
            raise StageChangeRejected("O enriquecimento não está aberto para edição")
        return self.backend.update_enrichment(enrichment.id, data)
