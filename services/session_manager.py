"""
Session State Manager
=====================
Centralized access to Streamlit session state.

Per-submission and per-analysis entries (stage-change flows, War Room drafts,
wizard controllers) are namespaced by id so switching companies never leaks
state from one workflow into another.
"""

import streamlit as st
from typing import Any, Optional, Dict, List, Tuple


class SessionManager:
    """
    Centralized session state manager.

    Wraps st.session_state with key constants and namespaced helpers.
    """

    # Session state keys (centralized constants)
    SUBMISSION_ID = 'submission_id'
    USER_ROLE = 'user_role'
    CURRENT_SECTION = 'current_section'
    STAGE_FLOW_PREFIX = 'stage_flow_'
    DRAFT_PREFIX = 'war_room_draft_'
    DRAFT_DIRTY_PREFIX = 'war_room_dirty_'
    SELECTED_FRAMEWORK = 'war_room_framework'
    WIZARD_PREFIX = 'wizard_'
    SHARE_URL_PREFIX = 'share_url_'

    @staticmethod
    def get(key: str, default: Any = None) -> Any:
        """
        Get value from session state.

        Args:
            key: Session state key
            default: Default value if key doesn't exist

        Returns:
            Value from session state or default
        """
        return st.session_state.get(key, default)

    @staticmethod
    def set(key: str, value: Any) -> None:
        st.session_state[key] = value

    @staticmethod
    def delete(key: str) -> None:
        if key in st.session_state:
            del st.session_state[key]

    @staticmethod
    def exists(key: str) -> bool:
        return key in st.session_state

    @staticmethod
    def get_submission_id() -> Optional[str]:
        """Get the submission currently open in the workflow view."""
        return SessionManager.get(SessionManager.SUBMISSION_ID)

    @staticmethod
    def set_submission_id(submission_id: str) -> None:
        SessionManager.set(SessionManager.SUBMISSION_ID, submission_id)

    @staticmethod
    def is_admin() -> bool:
        return SessionManager.get(SessionManager.USER_ROLE, 'admin') == 'admin'

    @staticmethod
    def get_or_create(key: str, factory) -> Any:
        """
        Return the value at key, creating it with factory() on first use.

        Args:
            key: Session state key
            factory: Zero-argument callable building the initial value
        """
        if key not in st.session_state:
            st.session_state[key] = factory()
        return st.session_state[key]

    # ------------------------------------------------------------------
    # War Room drafts
    # ------------------------------------------------------------------

    @staticmethod
    def get_draft(analysis_id: str) -> Optional[Dict[str, Any]]:
        return SessionManager.get(f'{SessionManager.DRAFT_PREFIX}{analysis_id}')

    @staticmethod
    def set_draft(analysis_id: str, frameworks: Dict[str, Any], dirty: bool = True) -> None:
        """
        Store the locally edited copy of an analysis.

        Args:
            analysis_id: Analysis being edited
            frameworks: Full framework dict (canonical keys)
            dirty: Whether the draft differs from the saved version
        """
        SessionManager.set(f'{SessionManager.DRAFT_PREFIX}{analysis_id}', frameworks)
        SessionManager.set(f'{SessionManager.DRAFT_DIRTY_PREFIX}{analysis_id}', dirty)

    @staticmethod
    def is_draft_dirty(analysis_id: str) -> bool:
        return bool(SessionManager.get(f'{SessionManager.DRAFT_DIRTY_PREFIX}{analysis_id}', False))

    @staticmethod
    def clear_draft(analysis_id: str) -> None:
        SessionManager.delete(f'{SessionManager.DRAFT_PREFIX}{analysis_id}')
        SessionManager.delete(f'{SessionManager.DRAFT_DIRTY_PREFIX}{analysis_id}')

    # ------------------------------------------------------------------
    # Cache maintenance
    # ------------------------------------------------------------------

    @staticmethod
    def clear_cache(prefix: Optional[str] = None) -> None:
        """
        Clear namespaced entries from session state.

        Args:
            prefix: Optional prefix to filter keys (e.g., 'war_room_draft_');
                clears every namespaced entry when omitted
        """
        prefixes = [prefix] if prefix else [
            SessionManager.STAGE_FLOW_PREFIX,
            SessionManager.DRAFT_PREFIX,
            SessionManager.DRAFT_DIRTY_PREFIX,
            SessionManager.WIZARD_PREFIX,
            SessionManager.SHARE_URL_PREFIX,
        ]
        keys_to_delete = [
            key for key in list(st.session_state.keys())
            if any(str(key).startswith(p) for p in prefixes)
        ]
        for key in keys_to_delete:
            SessionManager.delete(key)

    @staticmethod
    def validate_state() -> Tuple[bool, List[str]]:
        """
        Validate session state integrity.

        Returns:
            (is_valid, list_of_issues)
        """
        issues = []
        submission_id = SessionManager.get_submission_id()
        if submission_id is not None and not isinstance(submission_id, str):
            issues.append("submission_id must be a string")
        role = SessionManager.get(SessionManager.USER_ROLE)
        if role is not None and role not in ('admin', 'user'):
            issues.append(f"Unknown user_role: {role}")
        return len(issues) == 0, issues
