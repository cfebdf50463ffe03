"""
Pytest Configuration and Fixtures
==================================
Shared test fixtures: mock and in-memory backends plus sample records.
"""

import copy

import pytest
from typing import Dict, Any
from unittest.mock import Mock

from mock_data import SAMPLE_ENRICHMENTS, SAMPLE_FRAMEWORKS, SAMPLE_SUBMISSIONS, InMemoryBackend


@pytest.fixture
def session_state(monkeypatch):
    """Plain dict standing in for st.session_state outside a Streamlit run."""
    import streamlit as st

    state: Dict[str, Any] = {}
    monkeypatch.setattr(st, "session_state", state)
    return state


@pytest.fixture
def mock_backend():
    """Create a mock backend client."""
    backend = Mock()
    backend.generate_access_code.return_value = "ABC12345"
    return backend


@pytest.fixture
def memory_backend():
    """In-memory backend seeded with the demo records."""
    return InMemoryBackend()


@pytest.fixture
def sample_frameworks() -> Dict[str, Any]:
    """Snake-case framework payload as the backend ships it."""
    return copy.deepcopy(SAMPLE_FRAMEWORKS)


@pytest.fixture
def sample_submission() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_SUBMISSIONS[0])


@pytest.fixture
def sample_enrichment() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_ENRICHMENTS[0])


@pytest.fixture
def sample_analysis(sample_frameworks) -> Dict[str, Any]:
    """A completed analysis awaiting review."""
    return {
        'id': 'ana-100',
        'submissionId': 'sub-001',
        'status': 'completed',
        'version': 2,
        'isVisibleToUser': False,
        'isBlurred': True,
        'analysis': sample_frameworks,
        'createdAt': '2026-09-05T12:00:00Z',
    }


@pytest.fixture
def released_analysis(sample_analysis) -> Dict[str, Any]:
    """An approved analysis visible to the client."""
    return {**sample_analysis, 'status': 'approved', 'isVisibleToUser': True}
