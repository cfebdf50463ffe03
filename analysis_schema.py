"""
Imensiah - Analysis Schema
==========================
Record models for submissions, enrichments and analyses, the framework
registry, and the premium access policy.

Backend payloads arrive in either camelCase or snake_case. The pydantic
models below are the only place that reconciles the two spellings; every
other module reads the canonical attribute names and canonical framework
keys (``tamSamSom``, ``blueOcean``, ...).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from workflow_stages import (
    AnalysisStatus,
    EnrichmentStatus,
    coerce_analysis_status,
    coerce_enrichment_status,
)

logger = logging.getLogger(__name__)


# =============================================================================
# FRAMEWORK REGISTRY
# =============================================================================

ACCESS_FREE = "free"
ACCESS_PARTIAL = "partial"
ACCESS_LOCKED = "locked"

DEFAULT_TEASER = "Desbloqueie a análise completa para ver este conteúdo estratégico."


@dataclass(frozen=True)
class FrameworkSpec:
    """One analysis framework: how it is named, edited and gated."""
    key: str
    label: str
    layer: int
    editor: str
    access_level: str = ACCESS_FREE
    visible_fields: Tuple[str, ...] = ()
    teaser: str = DEFAULT_TEASER
    description: str = ""


FRAMEWORKS: Tuple[FrameworkSpec, ...] = (
    FrameworkSpec("synthesis", "Síntese Executiva", 0, "generic",
                  description="Resumo executivo e prioridades"),
    FrameworkSpec("pestel", "PESTEL", 1, "pestel", ACCESS_PARTIAL, ("summary",),
                  "Desbloqueie para ver a análise detalhada de cada fator político, econômico, "
                  "social, tecnológico, ambiental e legal.",
                  "Fatores macroambientais"),
    FrameworkSpec("porter", "Porter 7 Forças", 1, "porter", ACCESS_PARTIAL,
                  ("summary", "overallAttractiveness"),
                  "Desbloqueie para ver a análise completa das forças competitivas e "
                  "implicações estratégicas.",
                  "Forças competitivas do setor"),
    FrameworkSpec("tamSamSom", "TAM-SAM-SOM", 1, "generic", ACCESS_PARTIAL,
                  ("tam", "sam", "som"),
                  "Desbloqueie para ver premissas, metodologia e próximos passos de "
                  "dimensionamento.",
                  "Dimensionamento de mercado"),
    FrameworkSpec("swot", "SWOT", 2, "swot",
                  description="Forças, fraquezas, oportunidades e ameaças"),
    FrameworkSpec("benchmarking", "Benchmarking", 2, "generic", ACCESS_PARTIAL,
                  ("competitorsAnalyzed",),
                  "Desbloqueie para ver gaps de performance e melhores práticas dos "
                  "concorrentes.",
                  "Comparação com concorrentes"),
    FrameworkSpec("blueOcean", "Blue Ocean", 3, "generic", ACCESS_LOCKED, (),
                  "Desbloqueie para descobrir ações concretas de diferenciação: o que "
                  "eliminar, reduzir, elevar e criar.",
                  "Matriz ERRC"),
    FrameworkSpec("growthHacking", "Growth Hacking", 3, "generic", ACCESS_LOCKED, (),
                  "Desbloqueie para ver táticas de aquisição (LEAP) e monetização (SCALE) "
                  "específicas para seu negócio.",
                  "Loops de crescimento"),
    FrameworkSpec("scenarios", "Cenários", 3, "generic", ACCESS_LOCKED, (),
                  "Desbloqueie para ver cenários otimista, realista e pessimista com ações "
                  "de mitigação.",
                  "Cenários futuros"),
    FrameworkSpec("okrs", "OKRs", 4, "generic", ACCESS_LOCKED, (),
                  "Desbloqueie para ver o roadmap executável com objetivos, metas e "
                  "investimentos por trimestre.",
                  "Plano de 90 dias"),
    FrameworkSpec("bsc", "Balanced Scorecard", 4, "generic", ACCESS_LOCKED, (),
                  "Desbloqueie para ver métricas balanceadas nas perspectivas financeira, "
                  "cliente, processos e aprendizado.",
                  "Indicadores balanceados"),
    FrameworkSpec("decisionMatrix", "Matriz de Decisão", 4, "generic", ACCESS_LOCKED, (),
                  "Desbloqueie para ver recomendações priorizadas com timeline, budget e "
                  "métricas de monitoramento.",
                  "Recomendações priorizadas"),
)

FRAMEWORK_KEYS: Tuple[str, ...] = tuple(f.key for f in FRAMEWORKS)
_FRAMEWORKS_BY_KEY: Dict[str, FrameworkSpec] = {f.key: f for f in FRAMEWORKS}

LAYER_LABELS = {
    1: "Camada 1 - Contexto",
    2: "Camada 2 - Posicionamento",
    3: "Camada 3 - Estratégia",
    4: "Camada 4 - Execução",
}

EDITOR_KINDS = frozenset({"swot", "porter", "pestel", "generic"})


def get_framework(key: str) -> FrameworkSpec:
    try:
        return _FRAMEWORKS_BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown framework: {key}") from None


def has_framework_data(analysis: Optional[Dict[str, Any]], key: str) -> bool:
    """True when the framework is present and not an empty container."""
    value = (analysis or {}).get(key)
    if value is None:
        return False
    if isinstance(value, (dict, list, str)):
        return len(value) > 0
    return True


# =============================================================================
# KEY NORMALIZATION
# =============================================================================

FRAMEWORK_KEY_ALIASES: Dict[str, str] = {
    "tam_sam_som": "tamSamSom",
    "blue_ocean": "blueOcean",
    "growth_hacking": "growthHacking",
    "decision_matrix": "decisionMatrix",
    "executive_synthesis": "synthesis",
}

# Inner fields the backend emits with either spelling.
FIELD_KEY_ALIASES: Dict[str, str] = {
    "plan_90_days": "plan90Days",
    "total_investment": "totalInvestment",
    "success_metrics": "successMetrics",
    "key_results": "keyResults",
    "aligned_recommendation": "alignedRecommendation",
    "overall_attractiveness": "overallAttractiveness",
    "executive_summary": "executiveSummary",
    "key_findings": "keyFindings",
    "strategic_priorities": "strategicPriorities",
    "overall_recommendation": "overallRecommendation",
    "competitors_analyzed": "competitorsAnalyzed",
    "performance_gaps": "performanceGaps",
    "best_practices": "bestPractices",
    "new_value_curve": "newValueCurve",
}


def _normalize_fields(value: Any) -> Any:
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            canonical = FIELD_KEY_ALIASES.get(key, key)
            # The canonical spelling wins when both are present
            if canonical != key and canonical in value:
                continue
            out[canonical] = _normalize_fields(item)
        return out
    if isinstance(value, list):
        return [_normalize_fields(item) for item in value]
    return value


def normalize_frameworks(raw: Any) -> Dict[str, Any]:
    """
    Fold a backend framework payload into canonical framework keys.

    Accepts snake_case framework keys, the legacy ``framework_results``
    envelope, and alternate inner field spellings. Anything that is not a
    dict yields an empty analysis.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring non-object analysis payload of type %s", type(raw).__name__)
        return {}

    merged: Dict[str, Any] = {}
    envelope = raw.get("framework_results")
    if isinstance(envelope, dict):
        merged.update(envelope)
    merged.update({k: v for k, v in raw.items() if k != "framework_results"})

    out: Dict[str, Any] = {}
    for key, value in merged.items():
        canonical = FRAMEWORK_KEY_ALIASES.get(key, key)
        if canonical != key and canonical in merged:
            continue
        if value is None:
            continue
        out[canonical] = _normalize_fields(value)
    return out


# =============================================================================
# RECORD MODELS
# =============================================================================


def _either(snake: str, camel: str, default: Any = None) -> Any:
    return Field(default=default, validation_alias=AliasChoices(snake, camel))


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("id", "submission_id", mode="before", check_fields=False)
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class Submission(_Record):
    id: str
    company_name: str = _either("company_name", "companyName", "")
    cnpj: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = _either("company_size", "companySize")
    strategic_goal: Optional[str] = _either("strategic_goal", "strategicGoal")
    current_challenges: Optional[str] = _either("current_challenges", "currentChallenges")
    target_market: Optional[str] = _either("target_market", "targetMarket")
    business_challenge: Optional[str] = _either("business_challenge", "businessChallenge")
    created_at: Optional[datetime] = _either("created_at", "createdAt")


class Enrichment(_Record):
    id: str
    submission_id: str = _either("submission_id", "submissionId", "")
    status: EnrichmentStatus = EnrichmentStatus.PENDING
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = _either("created_at", "createdAt")
    updated_at: Optional[datetime] = _either("updated_at", "updatedAt")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> EnrichmentStatus:
        return coerce_enrichment_status(value) or EnrichmentStatus.PENDING

    @field_validator("data", mode="before")
    @classmethod
    def _data(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class Analysis(_Record):
    id: str
    submission_id: str = _either("submission_id", "submissionId", "")
    status: AnalysisStatus = AnalysisStatus.PENDING
    version: int = 1
    is_visible_to_user: bool = _either("is_visible_to_user", "isVisibleToUser", False)
    is_blurred: bool = _either("is_blurred", "isBlurred", True)
    access_code: Optional[str] = _either("access_code", "accessCode")
    pdf_url: Optional[str] = _either("pdf_url", "pdfUrl")
    error_message: Optional[str] = _either("error_message", "errorMessage")
    analysis: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = _either("created_at", "createdAt")
    updated_at: Optional[datetime] = _either("updated_at", "updatedAt")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> AnalysisStatus:
        return coerce_analysis_status(value) or AnalysisStatus.PENDING

    @field_validator("version", mode="before")
    @classmethod
    def _version(cls, value: Any) -> int:
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return 1

    @field_validator("is_visible_to_user", "is_blurred", mode="before")
    @classmethod
    def _flag(cls, value: Any, info) -> bool:
        if value is None:
            return info.field_name == "is_blurred"
        return bool(value)

    @field_validator("analysis", mode="before")
    @classmethod
    def _frameworks(cls, value: Any) -> Dict[str, Any]:
        return normalize_frameworks(value)

    @property
    def is_released(self) -> bool:
        return self.is_visible_to_user and self.status in (AnalysisStatus.APPROVED, AnalysisStatus.SENT)


def parse_analysis(payload: Optional[Dict[str, Any]]) -> Optional[Analysis]:
    """Build an Analysis from a backend payload; None stays None."""
    if payload is None:
        return None
    # Public report payloads sometimes carry frameworks at top level
    if "analysis" not in payload and "framework_results" in payload:
        payload = dict(payload, analysis=payload["framework_results"])
    return Analysis.model_validate(payload)


def parse_enrichment(payload: Optional[Dict[str, Any]]) -> Optional[Enrichment]:
    return None if payload is None else Enrichment.model_validate(payload)


def parse_submission(payload: Optional[Dict[str, Any]]) -> Optional[Submission]:
    return None if payload is None else Submission.model_validate(payload)


# =============================================================================
# ACCESS POLICY
# =============================================================================


@dataclass(frozen=True)
class FrameworkView:
    """What an end user may see of one framework."""
    key: str
    access_level: str
    data: Dict[str, Any]
    teaser: Optional[str] = None

    @property
    def is_locked(self) -> bool:
        return self.access_level == ACCESS_LOCKED


def get_teaser_message(key: str) -> str:
    spec = _FRAMEWORKS_BY_KEY.get(key)
    return spec.teaser if spec else DEFAULT_TEASER


def is_field_visible(key: str, field_name: str) -> bool:
    spec = _FRAMEWORKS_BY_KEY.get(key)
    if spec is None or spec.access_level == ACCESS_FREE:
        return True
    return field_name in spec.visible_fields


def apply_access_policy(
    analysis: Analysis,
    key: str,
    is_admin: bool = False,
    has_paid: bool = False,
) -> FrameworkView:
    """
    Filter one framework for display.

    Admins, paying users, and unblurred analyses see everything. Otherwise
    partial frameworks keep only their visible fields and locked frameworks
    keep nothing but the teaser.
    """
    data = analysis.analysis.get(key) or {}
    spec = _FRAMEWORKS_BY_KEY.get(key)
    if is_admin or has_paid or not analysis.is_blurred or spec is None:
        return FrameworkView(key, ACCESS_FREE, data)

    if spec.access_level == ACCESS_FREE:
        return FrameworkView(key, ACCESS_FREE, data)
    if spec.access_level == ACCESS_PARTIAL and isinstance(data, dict):
        visible = {k: v for k, v in data.items() if k in spec.visible_fields}
        return FrameworkView(key, ACCESS_PARTIAL, visible, spec.teaser)
    return FrameworkView(key, ACCESS_LOCKED, {}, spec.teaser)


def get_access_stats() -> Dict[str, int]:
    stats = {ACCESS_FREE: 0, ACCESS_PARTIAL: 0, ACCESS_LOCKED: 0}
    for spec in FRAMEWORKS:
        stats[spec.access_level] += 1
    stats["total"] = len(FRAMEWORKS)
    return stats


def frameworks_by_layer() -> List[Tuple[int, List[FrameworkSpec]]]:
    """Navigation groups in menu order: (layer, frameworks)."""
    layers: Dict[int, List[FrameworkSpec]] = {}
    for spec in FRAMEWORKS:
        layers.setdefault(spec.layer, []).append(spec)
    return sorted(layers.items())
