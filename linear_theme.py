"""
Imensiah Strategic Reports - Linear Theme
=========================================
Dark Linear-style theme for the Streamlit dashboard, in the Imensiah navy
and gold palette. The printed report has its own light palette in
report_engine.

Usage:
    from linear_theme import configure_page
    configure_page("Imensiah")
"""

import html
from datetime import date, datetime
from typing import Any, Optional, Union

import streamlit as st
from dateutil import parser as date_parser

# =============================================================================
# COLOR SYSTEM
# =============================================================================

COLORS = {
    # Backgrounds (darkest to lightest)
    'bg_base': '#070B14',
    'bg_elevated': '#0A101D',
    'bg_surface': '#111827',
    'bg_hover': '#1A2233',
    'bg_active': '#1F2937',

    # Borders
    'border_subtle': '#1F2937',
    'border_default': '#374151',
    'border_strong': '#4B5563',

    # Text
    'text_primary': '#F9FAFB',
    'text_secondary': '#D1D5DB',
    'text_tertiary': '#9CA3AF',
    'text_disabled': '#6B7280',

    # Imensiah gold
    'accent_gold': '#B89E68',
    'accent_gold_hover': '#CBB27D',
    'accent_gold_muted': 'rgba(184, 158, 104, 0.15)',
    'accent_gold_subtle': 'rgba(184, 158, 104, 0.08)',

    # Status
    'success': '#22C55E',
    'success_muted': 'rgba(34, 197, 94, 0.15)',
    'warning': '#F59E0B',
    'warning_muted': 'rgba(245, 158, 11, 0.15)',
    'error': '#EF4444',
    'error_muted': 'rgba(239, 68, 68, 0.15)',
    'info': '#3B82F6',
    'info_muted': 'rgba(59, 130, 246, 0.15)',
}

MONTHS_PT = (
    "jan", "fev", "mar", "abr", "mai", "jun",
    "jul", "ago", "set", "out", "nov", "dez",
)

# =============================================================================
# MAIN THEME CSS
# =============================================================================

LINEAR_CSS = f"""
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap');

:root {{
    --bg-base: {COLORS['bg_base']};
    --bg-elevated: {COLORS['bg_elevated']};
    --bg-surface: {COLORS['bg_surface']};
    --border-subtle: {COLORS['border_subtle']};
    --text-primary: {COLORS['text_primary']};
    --text-secondary: {COLORS['text_secondary']};
    --text-tertiary: {COLORS['text_tertiary']};
    --accent: {COLORS['accent_gold']};
}}

html, body, [data-testid="stAppViewContainer"] {{
    font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif !important;
    background-color: var(--bg-base) !important;
    color: var(--text-secondary) !important;
}}

.stApp {{ background-color: var(--bg-base) !important; }}

.block-container {{
    padding: 2rem 3rem !important;
    max-width: 1400px !important;
}}

h1, h2, h3, .stMarkdown h1, .stMarkdown h2, .stMarkdown h3 {{
    color: var(--text-primary) !important;
    font-weight: 600 !important;
    letter-spacing: -0.02em !important;
}}

h2, .stMarkdown h2 {{
    border-bottom: 1px solid var(--border-subtle) !important;
    padding-bottom: 0.5rem !important;
}}

p, .stMarkdown p {{ color: var(--text-secondary) !important; line-height: 1.6 !important; }}

a {{ color: var(--accent) !important; }}

[data-testid="stSidebar"] {{
    background-color: var(--bg-elevated) !important;
    border-right: 1px solid var(--border-subtle) !important;
}}

.stButton > button[kind="primary"] {{
    background-color: var(--accent) !important;
    border-color: var(--accent) !important;
    color: #0A101D !important;
}}

.stTabs [aria-selected="true"] {{ color: var(--accent) !important; }}

[data-testid="stExpander"] {{
    background-color: var(--bg-elevated) !important;
    border: 1px solid var(--border-subtle) !important;
    border-radius: 8px !important;
}}
</style>
"""


def apply_theme():
    """Inject the dashboard CSS."""
    st.markdown(LINEAR_CSS, unsafe_allow_html=True)


def configure_page(title: str = "Imensiah - Inteligência Estratégica"):
    """
    Configure page settings and apply theme in one call.
    """
    st.set_page_config(
        page_title=title,
        page_icon="🧭",
        layout="wide",
        initial_sidebar_state="expanded"
    )
    apply_theme()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def format_date(value: Union[str, date, datetime, None], with_time: bool = False) -> str:
    """Short Portuguese date ("19 out 2026"); "—" when missing."""
    if value in (None, ""):
        return "—"
    if isinstance(value, str):
        try:
            value = date_parser.isoparse(value)
        except ValueError:
            return value
    text = f"{value.day:02d} {MONTHS_PT[value.month - 1]} {value.year}"
    if with_time and isinstance(value, datetime):
        text += f" {value:%H:%M}"
    return text


def escape(value: Any) -> str:
    return html.escape("" if value is None else str(value))


# =============================================================================
# UI COMPONENT HELPERS
# =============================================================================

def badge(text: str, variant: str = 'neutral') -> str:
    """Create a badge HTML string."""
    color_map = {
        'success': COLORS['success'],
        'warning': COLORS['warning'],
        'error': COLORS['error'],
        'info': COLORS['info'],
        'gold': COLORS['accent_gold'],
        'neutral': COLORS['text_tertiary'],
    }
    color = color_map.get(variant, COLORS['text_tertiary'])
    return (f'<span style="background: {color}22; color: {color}; padding: 0.25rem 0.5rem; '
            f'border-radius: 4px; font-size: 0.75rem; font-weight: 500;">{escape(text)}</span>')


def stat_card(title: str, value: Any, subtitle: Optional[str] = None) -> str:
    """Create a stat card HTML string."""
    subtitle_html = (f'<div style="color: {COLORS["text_tertiary"]}; font-size: 0.8125rem;">'
                     f'{escape(subtitle)}</div>') if subtitle else ''
    return f'''
    <div style="background: {COLORS["bg_surface"]}; padding: 1rem; border-radius: 8px; border: 1px solid {COLORS["border_subtle"]};">
        <div style="color: {COLORS["text_tertiary"]}; font-size: 0.875rem; margin-bottom: 0.5rem;">{escape(title)}</div>
        <div style="color: {COLORS["text_primary"]}; font-size: 1.5rem; font-weight: 600; margin-bottom: 0.25rem;">{escape(value)}</div>
        {subtitle_html}
    </div>
    '''


def empty_state(title: str, description: Optional[str] = None, icon: str = "📭") -> None:
    """Render an empty state block."""
    st.markdown(f'''
    <div style="text-align: center; padding: 2.5rem 2rem; color: {COLORS["text_tertiary"]};
        border: 1px dashed {COLORS["border_default"]}; border-radius: 8px;">
        <div style="font-size: 2rem; margin-bottom: 0.5rem;">{icon}</div>
        <div style="font-size: 1.125rem; font-weight: 600; color: {COLORS["text_primary"]}; margin-bottom: 0.5rem;">{escape(title)}</div>
        {f'<div>{escape(description)}</div>' if description else ''}
    </div>
    ''', unsafe_allow_html=True)
