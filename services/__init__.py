"""
Services Layer
==============
Business logic separated from the Streamlit UI and the backend transport.

Service classes take a backend client in their constructor and can be used
independently of UI components (the report API uses ReportService).
"""

from .workflow_service import WorkflowService, WorkflowSnapshot, StageChangeRejected, TransitionInProgress
from .analysis_service import AnalysisService
from .report_service import ReportService
from .session_manager import SessionManager

__all__ = [
    'WorkflowService',
    'WorkflowSnapshot',
    'StageChangeRejected',
    'TransitionInProgress',
    'AnalysisService',
    'ReportService',
    'SessionManager',
]
