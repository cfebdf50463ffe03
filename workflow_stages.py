"""
Imensiah - Workflow Stage Model
===============================
Derives the current workflow stage of a submission from the statuses of its
enrichment and analysis, and decides which stage moves an admin may request.

The stage is never stored. Admin stages run 1-6, user stages 1-3:

    1 Enriquecendo           -> user 1 Coletando Dados
    2 Enriquecimento Pronto  -> user 1
    3 Analisando             -> user 2 Preparando Análise
    4 Análise Pronta         -> user 2
    5 Aprovado               -> user 2
    6 Liberado               -> user 3 Pronto!

Nothing in this module touches Streamlit or the backend; applying a
transition is the job of services.workflow_service.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class EnrichmentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    APPROVED = "approved"


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    GENERATED = "generated"
    COMPLETED = "completed"
    APPROVED = "approved"
    SENT = "sent"
    FAILED = "failed"


StatusLike = Union[str, Enum, None]

ADMIN_STAGE_COUNT = 6
USER_STAGE_COUNT = 3

# =============================================================================
# STAGE CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class StageConfig:
    stage: int
    label: str
    description: str
    icon: str


ADMIN_STAGES: Tuple[StageConfig, ...] = (
    StageConfig(1, "Enriquecendo", "Coletando dados da empresa", "🔍"),
    StageConfig(2, "Enriquecimento Pronto", "Aguardando revisão do enriquecimento", "📋"),
    StageConfig(3, "Analisando", "Gerando análise estratégica", "⚙️"),
    StageConfig(4, "Análise Pronta", "Aguardando revisão da análise", "📝"),
    StageConfig(5, "Aprovado", "Análise aprovada, pronta para liberar", "✅"),
    StageConfig(6, "Liberado", "Relatório disponível para o cliente", "🚀"),
)

USER_STAGES: Tuple[StageConfig, ...] = (
    StageConfig(1, "Coletando Dados", "Estamos reunindo informações sobre sua empresa", "🔍"),
    StageConfig(2, "Preparando Análise", "Nossa equipe está preparando sua análise estratégica", "⚙️"),
    StageConfig(3, "Pronto!", "Seu relatório estratégico está disponível", "🎉"),
)

# Lowest admin stage represented by each user stage.
USER_STAGE_ADMIN_FLOOR: Dict[int, int] = {1: 1, 2: 3, 3: 6}


def get_stage_config(stage: int, is_admin: bool = True) -> StageConfig:
    """Return the label/description/icon for a stage number."""
    stages = ADMIN_STAGES if is_admin else USER_STAGES
    if not 1 <= stage <= len(stages):
        raise ValueError(f"Invalid {'admin' if is_admin else 'user'} stage: {stage}")
    return stages[stage - 1]


# =============================================================================
# STATUS COERCION
# =============================================================================


def _coerce(status: StatusLike, enum_cls):
    if status is None or status == "":
        return None
    if isinstance(status, enum_cls):
        return status
    value = status.value if isinstance(status, Enum) else str(status)
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        logger.warning("Unknown %s value: %r", enum_cls.__name__, status)
        return None


def coerce_enrichment_status(status: StatusLike) -> Optional[EnrichmentStatus]:
    return _coerce(status, EnrichmentStatus)


def coerce_analysis_status(status: StatusLike) -> Optional[AnalysisStatus]:
    return _coerce(status, AnalysisStatus)


# =============================================================================
# STAGE COMPUTATION
# =============================================================================

_ANALYSIS_RUNNING = frozenset({
    AnalysisStatus.PENDING,
    AnalysisStatus.GENERATING,
    AnalysisStatus.FAILED,
})
_ANALYSIS_READY = frozenset({AnalysisStatus.GENERATED, AnalysisStatus.COMPLETED})
_ANALYSIS_APPROVED = frozenset({AnalysisStatus.APPROVED, AnalysisStatus.SENT})


def compute_admin_stage(
    enrichment_status: StatusLike,
    analysis_status: StatusLike = None,
    is_visible_to_user: bool = False,
) -> int:
    """
    Compute the admin stage (1-6) from the workflow statuses.

    Total over every combination of statuses: unknown values are treated as
    absent, which lands on stage 1 until enrichment is approved.
    """
    enrichment = coerce_enrichment_status(enrichment_status)
    analysis = coerce_analysis_status(analysis_status)

    if enrichment == EnrichmentStatus.COMPLETED:
        return 2
    if enrichment != EnrichmentStatus.APPROVED:
        return 1

    if analysis is None or analysis in _ANALYSIS_RUNNING:
        return 3
    if analysis in _ANALYSIS_READY:
        return 4
    return 6 if is_visible_to_user else 5


def user_stage_for_admin_stage(admin_stage: int) -> int:
    if admin_stage <= 2:
        return 1
    if admin_stage <= 5:
        return 2
    return 3


def compute_user_stage(
    enrichment_status: StatusLike,
    analysis_status: StatusLike = None,
    is_visible_to_user: bool = False,
) -> int:
    """Compute the end-user stage (1-3); "Pronto!" only once the report is released."""
    return user_stage_for_admin_stage(
        compute_admin_stage(enrichment_status, analysis_status, is_visible_to_user)
    )


# =============================================================================
# TRANSITIONS
# =============================================================================


@dataclass(frozen=True)
class StageTransition:
    from_stage: int
    to_stage: int
    action: str
    description: str
    params: Dict[str, Any] = field(default_factory=dict)
    consequences: Tuple[str, ...] = ()

    @property
    def is_backward(self) -> bool:
        return self.to_stage < self.from_stage


APPROVE_ENRICHMENT = "approveEnrichment"
APPROVE_ANALYSIS = "approveAnalysis"
TOGGLE_VISIBILITY = "toggleVisibility"
REOPEN_ANALYSIS = "reopenAnalysis"
REOPEN_ENRICHMENT = "reopenEnrichment"

_REOPEN_ENRICHMENT_CONSEQUENCES = (
    "O enriquecimento será desbloqueado para edição",
    "Ao aprovar novamente, a análise será reexecutada",
)
_REOPEN_ANALYSIS_CONSEQUENCES = (
    "A análise será desbloqueada para edição",
    "O relatório precisará ser re-aprovado",
)


def _reopen_enrichment(from_stage: int) -> StageTransition:
    return StageTransition(
        from_stage, 2, REOPEN_ENRICHMENT,
        "Reabrir enriquecimento para edição",
        consequences=_REOPEN_ENRICHMENT_CONSEQUENCES,
    )


def _reopen_analysis(from_stage: int) -> StageTransition:
    consequences = _REOPEN_ANALYSIS_CONSEQUENCES
    if from_stage == 6:
        consequences = consequences + ("O relatório será ocultado do cliente",)
    return StageTransition(
        from_stage, 4, REOPEN_ANALYSIS,
        "Reabrir análise para edição",
        consequences=consequences,
    )


STAGE_TRANSITIONS: Dict[Tuple[int, int], StageTransition] = {
    (2, 3): StageTransition(
        2, 3, APPROVE_ENRICHMENT,
        "Aprovar enriquecimento e iniciar análise",
        consequences=(
            "O enriquecimento será bloqueado",
            "A análise começará automaticamente",
        ),
    ),
    (4, 5): StageTransition(
        4, 5, APPROVE_ANALYSIS,
        "Aprovar análise",
        consequences=("A análise será bloqueada",),
    ),
    (5, 6): StageTransition(
        5, 6, TOGGLE_VISIBILITY,
        "Liberar relatório para o cliente",
        params={"visible": True},
        consequences=("O cliente poderá visualizar o relatório",),
    ),
    (6, 5): StageTransition(
        6, 5, TOGGLE_VISIBILITY,
        "Ocultar relatório do cliente",
        params={"visible": False},
        consequences=("O relatório será ocultado do cliente",),
    ),
    (6, 4): _reopen_analysis(6),
    (5, 4): _reopen_analysis(5),
    (3, 2): _reopen_enrichment(3),
    (4, 2): _reopen_enrichment(4),
    (5, 2): _reopen_enrichment(5),
    (6, 2): _reopen_enrichment(6),
}

# Stage moves that happen when background processing finishes.
AUTOMATIC_TRANSITIONS: FrozenSet[Tuple[int, int]] = frozenset({(1, 2), (3, 4)})

BACKWARD_TRANSITIONS: FrozenSet[Tuple[int, int]] = frozenset(
    key for key, transition in STAGE_TRANSITIONS.items() if transition.is_backward
)

# Statuses a forward move needs before it can land on the target stage.
_FORWARD_PREREQUISITES = {
    2: ("enrichment", frozenset({EnrichmentStatus.COMPLETED}),
        "O enriquecimento ainda está em processamento"),
    3: ("enrichment", frozenset({EnrichmentStatus.COMPLETED, EnrichmentStatus.APPROVED}),
        "O enriquecimento ainda não foi concluído"),
    4: ("analysis", _ANALYSIS_READY,
        "A análise ainda está em processamento"),
    5: ("analysis", _ANALYSIS_READY | _ANALYSIS_APPROVED,
        "A análise ainda não foi concluída"),
    6: ("analysis", _ANALYSIS_APPROVED,
        "A análise precisa ser aprovada antes de liberar"),
}


def get_stage_transition(from_stage: int, to_stage: int) -> Optional[StageTransition]:
    """
    Look up the admin action that moves the workflow between two stages.

    Returns None for moves the backend performs on its own (1->2, 3->4) and for
    moves that have no action at all.
    """
    return STAGE_TRANSITIONS.get((from_stage, to_stage))


def can_move_to_stage(
    current_stage: int,
    target_stage: int,
    enrichment_status: StatusLike,
    analysis_status: StatusLike = None,
) -> Optional[str]:
    """
    Check whether an admin may request a move from current_stage to target_stage.

    Returns:
        None when the move is allowed, otherwise the reason it is rejected.
    """
    for stage in (current_stage, target_stage):
        if not isinstance(stage, int) or not 1 <= stage <= ADMIN_STAGE_COUNT:
            return f"Estágio inválido: {stage}"

    if target_stage == current_stage:
        return "Já está neste estágio"

    if target_stage < current_stage:
        if (current_stage, target_stage) not in BACKWARD_TRANSITIONS:
            return "Não é possível retornar para este estágio"
        return None

    if target_stage - current_stage > 1:
        return "Avance um estágio por vez"

    subject, allowed, reason = _FORWARD_PREREQUISITES[target_stage]
    if subject == "enrichment":
        status = coerce_enrichment_status(enrichment_status)
    else:
        status = coerce_analysis_status(analysis_status)
    if status not in allowed:
        return reason
    return None


# =============================================================================
# STAGE CONTENT
# =============================================================================


@dataclass(frozen=True)
class StageContent:
    show_enrichment: bool
    enrichment_editable: bool
    show_analysis: bool
    analysis_editable: bool
    show_report_button: bool


_ADMIN_CONTENT: Dict[int, StageContent] = {
    1: StageContent(True, False, False, False, False),
    2: StageContent(True, True, False, False, False),
    3: StageContent(True, False, True, False, False),
    4: StageContent(True, False, True, True, True),
    5: StageContent(True, False, True, False, True),
    6: StageContent(True, False, True, False, True),
}


def get_admin_stage_content(stage: int) -> StageContent:
    """What the admin workflow panel shows, and lets the admin edit, at a stage."""
    return _ADMIN_CONTENT.get(stage, _ADMIN_CONTENT[1])


def get_user_stage_content(stage: int, is_visible_to_user: bool = False) -> StageContent:
    ready = stage >= 3 and is_visible_to_user
    return StageContent(
        show_enrichment=False,
        enrichment_editable=False,
        show_analysis=ready,
        analysis_editable=False,
        show_report_button=ready,
    )
