"""
Report Preview
==============
Page-by-page preview of the 24-page report inside Streamlit, plus an HTML
download of the whole document.
"""

from typing import Any, Dict, Optional

import streamlit as st
import streamlit.components.v1 as components

from analysis_schema import Analysis, Submission
from page_mapping import PAGE_MAPPINGS, TOTAL_PAGES
from report_engine import PAGE_HEIGHT, render_report_html

PREVIEW_PAGE_PREFIX = 'preview_page_'


def preview_page_key(key_prefix: str) -> str:
    return f"{PREVIEW_PAGE_PREFIX}{key_prefix}"


def jump_to_page(key_prefix: str, page_number: int) -> None:
    """Point the preview identified by key_prefix at a page (clamped to 1..24)."""
    st.session_state[preview_page_key(key_prefix)] = min(max(int(page_number), 1), TOTAL_PAGES)


def _page_label(page_number: int) -> str:
    mapping = PAGE_MAPPINGS[page_number - 1]
    return f"{page_number:02d} · {mapping.title}"


def render_report_preview(
    report_service,
    analysis: Optional[Analysis],
    submission: Optional[Submission],
    frameworks: Optional[Dict[str, Any]] = None,
    key_prefix: str = "report",
):
    """
    Render one report page at a time with navigation.

    Args:
        report_service: ReportService used to render
        analysis: Analysis record
        submission: Company submission (cover metadata)
        frameworks: Optional override of the analysis content (drafts, or
            the access-filtered view for end users)
        key_prefix: Keeps several previews on one page independent
    """
    pages = report_service.render_pages(analysis, submission, frameworks)
    page_key = preview_page_key(key_prefix)
    if page_key not in st.session_state:
        st.session_state[page_key] = 1

    current = st.session_state[page_key]
    c1, c2, c3, c4 = st.columns([1, 4, 1, 2])
    with c1:
        st.button("◀", key=f"{key_prefix}_prev", disabled=current <= 1,
                  on_click=jump_to_page, args=(key_prefix, current - 1))
    with c2:
        st.selectbox(
            "Página",
            options=list(range(1, TOTAL_PAGES + 1)),
            format_func=_page_label,
            key=page_key,
            label_visibility="collapsed",
        )
    with c3:
        st.button("▶", key=f"{key_prefix}_next", disabled=current >= TOTAL_PAGES,
                  on_click=jump_to_page, args=(key_prefix, current + 1))
    with c4:
        title = f"Relatório - {submission.company_name}" if submission else "Relatório Estratégico"
        st.download_button(
            "⬇️ Baixar HTML",
            data=render_report_html(pages, title=title),
            file_name=f"relatorio_{analysis.submission_id if analysis else 'preview'}.html",
            mime="text/html",
            key=f"{key_prefix}_download",
        )

    page = pages[st.session_state[page_key] - 1]
    if page.is_placeholder:
        st.caption("Esta página ainda não tem dados na análise.")
    components.html(render_report_html([page], title=title), height=PAGE_HEIGHT + 60, scrolling=True)
