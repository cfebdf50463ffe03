from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PdfExportRequest(BaseModel):
    access_code: Optional[str] = Field(None, description="Existing share code; generated when omitted")
    format: str = Field("A4-landscape", description="Page format passed to the PDF renderer")


class StageValidationRequest(BaseModel):
    current_stage: int = Field(..., ge=1, le=6, description="Current admin stage")
    target_stage: int = Field(..., ge=1, le=6, description="Requested admin stage")
    enrichment_status: Optional[str] = Field(None, description="Enrichment status")
    analysis_status: Optional[str] = Field(None, description="Analysis status")


class StageTransitionOut(BaseModel):
    action: str
    description: str
    params: Dict[str, Any] = Field(default_factory=dict)
    consequences: List[str] = Field(default_factory=list)
    is_backward: bool = False


class StageValidationResponse(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    automatic: bool = False
    transition: Optional[StageTransitionOut] = None


class PageMappingOut(BaseModel):
    page_number: int
    template_file: str
    title: str
    framework: Optional[str] = None
    is_divider: bool = False


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    enqueued_at: Optional[str] = None
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    result: Optional[Any] = None
    error: Optional[str] = None
