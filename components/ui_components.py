"""
Imensiah - UI Components
========================
Reusable UI building blocks following the Linear design system.
"""

import streamlit as st
from typing import Any, Dict, Iterable, List, Optional

from linear_theme import COLORS, badge, escape, stat_card, empty_state

STATUS_LABELS = {
    'pending': 'Pendente',
    'processing': 'Processando',
    'generating': 'Gerando',
    'generated': 'Gerada',
    'completed': 'Concluído',
    'approved': 'Aprovado',
    'sent': 'Enviado',
    'failed': 'Falhou',
}

_STATUS_VARIANTS = {
    'completed': 'success',
    'generated': 'success',
    'approved': 'success',
    'sent': 'success',
    'pending': 'warning',
    'processing': 'warning',
    'generating': 'warning',
    'failed': 'error',
}

# =============================================================================
# LAYOUT COMPONENTS
# =============================================================================

def page_header(title: str, subtitle: str = None):
    """
    Render a page header with title and optional subtitle.

    Args:
        title: Main page title
        subtitle: Optional description text
    """
    st.markdown(f'''
    <div style="margin-bottom: 1.5rem;">
        <h1 style="
            font-size: 1.875rem;
            font-weight: 700;
            color: {COLORS['text_primary']};
            margin: 0 0 0.25rem 0;
            letter-spacing: -0.02em;
        ">{escape(title)}</h1>
        {f'<p style="color: {COLORS["text_tertiary"]}; margin: 0; font-size: 0.9375rem;">{escape(subtitle)}</p>' if subtitle else ''}
    </div>
    ''', unsafe_allow_html=True)


def metric_row(metrics: List[Dict[str, Any]], columns: int = 4):
    """
    Render a row of metric cards.

    Args:
        metrics: List of dicts with keys: label, value, subtitle (optional)
        columns: Number of columns
    """
    cols = st.columns(columns)
    for i, metric in enumerate(metrics):
        with cols[i % columns]:
            st.markdown(
                stat_card(metric['label'], metric['value'], metric.get('subtitle')),
                unsafe_allow_html=True,
            )


def info_card(title: str, content: str, icon: str = None, variant: str = 'default'):
    """
    Render an information card.

    Args:
        title: Card title
        content: Card text (escaped)
        icon: Optional emoji icon
        variant: 'default', 'gold', 'success', 'warning', 'error'
    """
    border_colors = {
        'default': COLORS['border_subtle'],
        'gold': COLORS['accent_gold'],
        'success': COLORS['success'],
        'warning': COLORS['warning'],
        'error': COLORS['error'],
    }
    border_color = border_colors.get(variant, border_colors['default'])
    icon_html = f'<span style="font-size: 1.25rem; margin-right: 0.5rem;">{icon}</span>' if icon else ''

    st.markdown(f'''
    <div style="
        background-color: {COLORS['bg_elevated']};
        border: 1px solid {COLORS['border_subtle']};
        border-left: 3px solid {border_color};
        border-radius: 8px;
        padding: 1rem 1.25rem;
        margin-bottom: 1rem;
    ">
        <div style="display: flex; align-items: center; margin-bottom: 0.5rem;">
            {icon_html}
            <span style="font-size: 0.9375rem; font-weight: 600; color: {COLORS['text_primary']};">{escape(title)}</span>
        </div>
        <div style="font-size: 0.875rem; color: {COLORS['text_secondary']}; line-height: 1.5;">{escape(content)}</div>
    </div>
    ''', unsafe_allow_html=True)


def no_data_yet(message: str, title: str = "Ainda não há dados"):
    """Placeholder for a workflow section that has not started."""
    empty_state(title, message, icon="⏳")


def status_badge(status: Optional[str]) -> str:
    """Badge HTML for a workflow status value, labelled in Portuguese."""
    key = (status or '').lower()
    return badge(STATUS_LABELS.get(key, status or '—'), _STATUS_VARIANTS.get(key, 'neutral'))


def progress_indicator(value: float, label: str = None, show_value: bool = True):
    """
    Render a progress bar with optional label.

    Args:
        value: Progress value between 0 and 1
        label: Optional label text
        show_value: Whether to show percentage value
    """
    percentage = min(max(value * 100, 0), 100)
    color = COLORS['success'] if percentage >= 100 else COLORS['accent_gold']
    label_html = f'<span style="color: {COLORS["text_secondary"]}; font-size: 0.8125rem;">{escape(label)}</span>' if label else ''
    value_html = f'<span style="color: {COLORS["text_primary"]}; font-size: 0.8125rem; font-weight: 500;">{percentage:.0f}%</span>' if show_value else ''

    st.markdown(f'''
    <div style="margin-bottom: 1rem;">
        <div style="display: flex; justify-content: space-between; margin-bottom: 0.375rem;">
            {label_html}
            {value_html}
        </div>
        <div style="height: 6px; background-color: {COLORS['bg_active']}; border-radius: 3px; overflow: hidden;">
            <div style="height: 100%; width: {percentage}%; background-color: {color}; border-radius: 3px;"></div>
        </div>
    </div>
    ''', unsafe_allow_html=True)


def list_section(title: str, items: Optional[Iterable[Any]], icon: str = "•"):
    """
    Render a titled bullet list; renders nothing when the list is empty.

    Args:
        title: Section title
        items: Strings, or dicts with a content/description field
        icon: Bullet marker
    """
    rows = [item for item in (items or []) if item not in (None, '')]
    if not rows:
        return
    st.markdown(f"**{title}**")
    for item in rows:
        if isinstance(item, dict):
            text = item.get('content') or item.get('description') or item.get('title') or str(item)
        else:
            text = str(item)
        st.markdown(f"{icon} {text}")


# =============================================================================
# FEEDBACK
# =============================================================================

def show_success(message: str, details: str = None, icon: str = "✅"):
    full_message = f"{icon} **{message}**"
    if details:
        full_message += f"\n\n{details}"
    st.success(full_message)


def show_error(message: str, details: str = None, icon: str = "❌"):
    """
    Show a standardized error message.

    Args:
        message: Main error message
        details: Optional additional details
        icon: Optional icon (default: ❌)
    """
    full_message = f"{icon} **{message}**"
    if details:
        full_message += f"\n\n{details}"
    st.error(full_message)


def show_warning(message: str, details: str = None, icon: str = "⚠️"):
    full_message = f"{icon} **{message}**"
    if details:
        full_message += f"\n\n{details}"
    st.warning(full_message)


# =============================================================================
# CHARTS
# =============================================================================

def apply_plotly_theme(fig):
    """
    Apply the dashboard theme to a Plotly figure.

    Args:
        fig: Plotly figure object

    Returns:
        Themed figure
    """
    fig.update_layout(
        paper_bgcolor=COLORS['bg_elevated'],
        plot_bgcolor=COLORS['bg_elevated'],
        font=dict(family="Inter, sans-serif", size=12, color=COLORS['text_secondary']),
        xaxis=dict(gridcolor=COLORS['border_subtle'], linecolor=COLORS['border_subtle']),
        yaxis=dict(gridcolor=COLORS['border_subtle'], linecolor=COLORS['border_subtle']),
        margin=dict(l=40, r=20, t=30, b=40),
    )
    return fig
