"""
Imensiah - Report Engine
========================
Renders the 24-page strategic report as HTML.

Each page is a fixed 842x595 frame (A4 landscape at 72 dpi). Templates are
pure functions of the page data; ``render_page`` picks one through an ordered
list of (predicate, renderer) rules that always ends in the placeholder page,
so every page number 1-24 renders even when the analysis is empty.

The HTML produced here is what the Streamlit preview embeds and what the
report API serves to the external PDF renderer.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from dateutil import parser as date_parser

from page_mapping import PAGE_MAPPINGS, TOTAL_PAGES, PageMapping, get_framework_pages, get_page_mapping

logger = logging.getLogger(__name__)

PAGE_WIDTH = 842
PAGE_HEIGHT = 595
FOOTER_BRAND = "IMENSIAH — Relatório de Inteligência Estratégica"

PALETTE = {
    'navy': '#0A101D',
    'gold': '#B89E68',
    'sand': '#E5E0D6',
    'muted': '#71717A',
    'ink': '#111827',
    'body': '#374151',
    'red': '#DC2626',
    'orange': '#EA580C',
    'amber': '#F59E0B',
    'green': '#10B981',
    'cyan': '#0891B2',
}

MONTHS_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)

REPORT_CSS = f"""
* {{ box-sizing: border-box; margin: 0; padding: 0; }}
body {{ font-family: Inter, Arial, sans-serif; background: #F4F4F5; }}
.im-page {{ width: {PAGE_WIDTH}px; height: {PAGE_HEIGHT}px; overflow: hidden; position: relative;
  background: #FFFFFF; padding: 32px; display: flex; flex-direction: column; margin: 0 auto 16px auto;
  page-break-after: always; }}
.im-head {{ display: flex; justify-content: space-between; margin-bottom: 16px; padding-bottom: 8px;
  border-bottom: 1px solid {PALETTE['sand']}; font-size: 10px; }}
.im-head .num {{ font-weight: 600; color: {PALETTE['gold']}; }}
.im-head .company {{ color: {PALETTE['muted']}; }}
.im-title {{ font-size: 22px; font-weight: 300; color: {PALETTE['navy']}; margin-bottom: 4px; }}
.im-kicker {{ font-size: 9px; font-weight: 600; text-transform: uppercase; letter-spacing: .15em;
  color: {PALETTE['gold']}; margin-bottom: 16px; }}
.im-body {{ flex: 1; overflow: hidden; }}
.im-grid-2 {{ display: grid; grid-template-columns: 1fr 1fr; gap: 14px; }}
.im-grid-3 {{ display: grid; grid-template-columns: 1fr 1fr 1fr; gap: 14px; }}
.im-box {{ border: 1px solid {PALETTE['sand']}; padding: 12px; }}
.im-box h3 {{ font-size: 10px; font-weight: 700; margin-bottom: 8px; }}
.im-box p, .im-text {{ font-size: 9px; color: {PALETTE['ink']}; line-height: 1.5; }}
.im-list {{ list-style: none; }}
.im-list li {{ font-size: 8.5px; color: {PALETTE['ink']}; padding-left: 10px; position: relative;
  margin-bottom: 3px; }}
.im-list li span.mark {{ position: absolute; left: 0; }}
.im-accent {{ border-left: 4px solid {PALETTE['gold']}; padding-left: 18px; margin-bottom: 14px; }}
.im-foot {{ display: flex; justify-content: space-between; padding-top: 10px; margin-top: auto;
  border-top: 1px solid {PALETTE['sand']}; font-size: 8px; color: {PALETTE['muted']}; }}
.im-divider {{ background: linear-gradient(135deg, {PALETTE['navy']} 0%, #1F2937 100%);
  align-items: center; justify-content: center; text-align: center; }}
.im-divider .label {{ font-size: 12px; font-weight: 700; text-transform: uppercase; letter-spacing: .3em;
  color: {PALETTE['gold']}; margin-bottom: 24px; }}
.im-divider h1 {{ font-size: 44px; font-weight: 300; color: #FFFFFF; }}
.im-divider .num {{ position: absolute; bottom: 32px; right: 32px; font-size: 10px; color: {PALETTE['gold']}; }}
.im-table {{ width: 100%; border-collapse: collapse; font-size: 8.5px; }}
.im-table th {{ text-align: left; color: {PALETTE['muted']}; border-bottom: 1px solid {PALETTE['sand']};
  padding: 4px; }}
.im-table td {{ border-bottom: 1px solid {PALETTE['sand']}; padding: 4px; color: {PALETTE['ink']}; }}
.im-counter {{ text-align: center; font-size: 8px; color: {PALETTE['muted']}; margin-bottom: 24px; }}
"""


# =============================================================================
# CONTEXT & RESULT TYPES
# =============================================================================


@dataclass
class ReportContext:
    """Everything a page template may read."""
    analysis: Dict[str, Any] = field(default_factory=dict)
    company_name: str = ""
    industry: str = ""
    market: str = ""
    date: str = ""
    version: int = 1

    def framework(self, key: Optional[str]) -> Any:
        if not key:
            return None
        return self.analysis.get(key)


@dataclass(frozen=True)
class RenderedPage:
    page_number: int
    title: str
    template_file: str
    html: str
    is_placeholder: bool = False
    is_divider: bool = False


Renderer = Callable[[PageMapping, ReportContext], str]
Predicate = Callable[[PageMapping, ReportContext], bool]


@dataclass(frozen=True)
class PageRule:
    name: str
    predicate: Predicate
    renderer: Renderer


# =============================================================================
# FORMATTING HELPERS
# =============================================================================


def format_report_date(value: Union[str, date, datetime, None] = None) -> str:
    """Long Portuguese date ("19 de outubro de 2026"); today when value is None."""
    if value is None or value == "":
        parsed: date = date.today()
    elif isinstance(value, (date, datetime)):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except (ValueError, OverflowError):
            return str(value)
    return f"{parsed.day} de {MONTHS_PT[parsed.month - 1]} de {parsed.year}"


def _esc(value: Any) -> str:
    if value is None:
        return ""
    return html.escape(_as_text(value))


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for key in ("content", "description", "text", "title", "name"):
            if value.get(key):
                return str(value[key])
        return "; ".join(f"{k}: {v}" for k, v in value.items() if v not in (None, "", [], {}))
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(v) for v in value)
    return str(value)


def _items(value: Any) -> List[Any]:
    if isinstance(value, list):
        return [v for v in value if v not in (None, "")]
    if value in (None, "", {}):
        return []
    return [value]


def _bullets(items: Iterable[Any], mark: str = "•", limit: Optional[int] = None) -> str:
    rows = list(items)
    if limit is not None:
        rows = rows[:limit]
    if not rows:
        return ""
    lis = "".join(f'<li><span class="mark">{mark}</span>{_esc(item)}</li>' for item in rows)
    return f'<ul class="im-list">{lis}</ul>'


def _box(title: str, content: str, color: str = PALETTE['muted']) -> str:
    return f'<div class="im-box"><h3 style="color:{color};">{_esc(title)}</h3>{content}</div>'


def _two_digit(page_number: int) -> str:
    return f"{page_number:02d}"


def _page(mapping: PageMapping, ctx: ReportContext, title: str, kicker: str, body: str) -> str:
    return f"""
<section class="im-page" data-page="{mapping.page_number}" data-template="{_esc(mapping.template_file)}">
  <div class="im-head"><div class="num">{_two_digit(mapping.page_number)}</div>
    <div class="company">{_esc(ctx.company_name)}</div></div>
  <h1 class="im-title">{_esc(title)}</h1>
  <div class="im-kicker">{_esc(kicker)}</div>
  <div class="im-body">{body}</div>
  <div class="im-foot"><div>{FOOTER_BRAND}</div><div>{_esc(ctx.date)}</div></div>
</section>"""


# =============================================================================
# PAGE TEMPLATES
# =============================================================================


def cover_page(mapping: PageMapping, ctx: ReportContext) -> str:
    meta = (
        ("Setor", ctx.industry or "—"),
        ("Mercado", ctx.market or "—"),
        ("Data do Relatório", ctx.date),
        ("Versão", f"{ctx.version}.0"),
    )
    cells = "".join(
        f'<div style="border-left:2px solid {PALETTE["sand"]};padding-left:12px;">'
        f'<div style="font-size:8px;font-weight:600;text-transform:uppercase;letter-spacing:.15em;'
        f'color:{PALETTE["muted"]};margin-bottom:4px;">{_esc(label)}</div>'
        f'<div style="font-size:12px;font-weight:500;color:{PALETTE["navy"]};">{_esc(value)}</div></div>'
        for label, value in meta
    )
    return f"""
<section class="im-page" data-page="{mapping.page_number}" data-template="{_esc(mapping.template_file)}"
  style="padding:40px;">
  <div style="position:absolute;left:0;top:100px;width:6px;height:180px;
    background:linear-gradient(180deg,{PALETTE['gold']} 0%,#A18852 100%);"></div>
  <div style="margin-top:40px;text-align:center;font-size:32px;font-weight:700;color:{PALETTE['navy']};">IM</div>
  <div style="flex:1;display:flex;flex-direction:column;justify-content:center;padding-left:40px;">
    <div style="font-size:9px;font-weight:700;text-transform:uppercase;letter-spacing:.2em;
      color:{PALETTE['gold']};margin-bottom:20px;">Relatório de Análise Estratégica</div>
    <h1 style="font-size:42px;font-weight:300;color:{PALETTE['navy']};margin-bottom:12px;">{_esc(ctx.company_name)}</h1>
    <div style="font-size:18px;color:#52525B;">Inteligência de Negócios Completa</div>
  </div>
  <div style="display:grid;grid-template-columns:repeat(4,1fr);gap:20px;padding-left:40px;margin-bottom:48px;">{cells}</div>
  <div style="position:absolute;bottom:28px;left:40px;right:40px;padding-top:16px;
    border-top:1px solid {PALETTE['sand']};text-align:center;font-size:8px;color:{PALETTE['muted']};">
    <span style="font-weight:600;color:{PALETTE['gold']};">IMENSIAH</span>
    — Inteligência Artificial + Inteligência Humana</div>
</section>"""


TOC_ENTRIES: Tuple[Tuple[str, str], ...] = (
    ("Sumário Executivo", "synthesis"),
    ("Análise PESTEL", "pestel"),
    ("7 Forças de Porter", "porter"),
    ("Análise SWOT", "swot"),
    ("TAM SAM SOM", "tamSamSom"),
    ("Blue Ocean Strategy", "blueOcean"),
    ("Benchmarking Competitivo", "benchmarking"),
    ("OKRs Estratégicos", "okrs"),
    ("Balanced Scorecard", "bsc"),
    ("Growth Loops", "growthHacking"),
    ("Matriz de Riscos e Decisão", "decisionMatrix"),
    ("Cenários Futuros", "scenarios"),
)


def _page_range(pages: List[int]) -> str:
    if not pages:
        return ""
    if len(pages) == 1:
        return _two_digit(pages[0])
    return f"{_two_digit(pages[0])}-{_two_digit(pages[-1])}"


def toc_page(mapping: PageMapping, ctx: ReportContext) -> str:
    rows = []
    for label, framework in TOC_ENTRIES:
        pages = get_framework_pages(framework)
        if framework == "synthesis":
            pages = pages[:1]
        rows.append(
            f'<div style="display:flex;justify-content:space-between;font-size:10px;'
            f'border-bottom:1px solid {PALETTE["sand"]};padding-bottom:6px;margin-bottom:8px;">'
            f'<span>{_esc(label)}</span><span style="color:{PALETTE["gold"]};">{_page_range(pages)}</span></div>'
        )
    rows.append(
        f'<div style="display:flex;justify-content:space-between;font-size:10px;">'
        f'<span>Recomendações</span><span style="color:{PALETTE["gold"]};">23</span></div>'
    )
    return _page(mapping, ctx, "Índice", "Estrutura do Relatório", "".join(rows))


def divider_page(mapping: PageMapping, ctx: ReportContext) -> str:
    return f"""
<section class="im-page im-divider" data-page="{mapping.page_number}" data-template="{_esc(mapping.template_file)}">
  <div><div class="label">{_esc(mapping.section_label)}</div>
  <h1>{_esc(mapping.section_subtitle)}</h1></div>
  <div class="num">{_two_digit(mapping.page_number)}</div>
</section>"""


def exec_summary_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("synthesis") or {}
    body = (
        f'<div class="im-accent"><p class="im-text" style="font-size:10px;">'
        f'{_esc(data.get("executiveSummary"))}</p></div>'
        f'<div class="im-grid-2">'
        f'{_box("Principais Descobertas", _bullets(_items(data.get("keyFindings")), limit=6))}'
        f'{_box("Prioridades Estratégicas", _bullets(_items(data.get("strategicPriorities")), "→", 6), PALETTE["gold"])}'
        f'</div>'
    )
    return _page(mapping, ctx, "Sumário Executivo", "Visão Geral Estratégica", body)


def _pestel_page(factors: Tuple[Tuple[str, str], ...], subtitle: str) -> Renderer:
    def render(mapping: PageMapping, ctx: ReportContext) -> str:
        data = ctx.framework("pestel") or {}
        boxes = "".join(
            _box(label, _bullets(_items(data.get(key)), limit=6), PALETTE['gold'])
            for key, label in factors
        )
        return _page(mapping, ctx, "Análise PESTEL", subtitle, f'<div class="im-grid-3">{boxes}</div>')
    return render


pestel_pes_page = _pestel_page(
    (("political", "Político"), ("economic", "Econômico"), ("social", "Social")),
    "Fatores Político, Econômico e Social",
)
pestel_tel_page = _pestel_page(
    (("technological", "Tecnológico"), ("environmental", "Ambiental"), ("legal", "Legal")),
    "Fatores Tecnológico, Ambiental e Legal",
)

_INTENSITY_COLORS = {'Alta': PALETTE['red'], 'Média': PALETTE['amber'], 'Baixa': PALETTE['green']}


def porter_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("porter") or {}
    rows = []
    for force in _items(data.get("forces"))[:7]:
        if not isinstance(force, dict):
            force = {"force": force}
        intensity = force.get("intensity") or ""
        color = _INTENSITY_COLORS.get(intensity, PALETTE['muted'])
        rows.append(
            f'<tr><td style="font-weight:600;">{_esc(force.get("force"))}</td>'
            f'<td style="color:{color};font-weight:700;">{_esc(intensity)}</td>'
            f'<td>{_esc(force.get("description"))}</td></tr>'
        )
    body = (
        f'<table class="im-table"><tr><th>Força</th><th>Intensidade</th><th>Análise</th></tr>'
        f'{"".join(rows)}</table>'
    )
    if data.get("overallAttractiveness"):
        body += (
            f'<div class="im-accent" style="margin-top:14px;"><p class="im-text">'
            f'<strong>Atratividade do setor:</strong> {_esc(data.get("overallAttractiveness"))}</p></div>'
        )
    return _page(mapping, ctx, "7 Forças de Porter", "Análise Competitiva do Setor", body)


_SWOT_QUADRANTS = (
    ("strengths", "Forças", PALETTE['green']),
    ("weaknesses", "Fraquezas", PALETTE['red']),
    ("opportunities", "Oportunidades", PALETTE['cyan']),
    ("threats", "Ameaças", PALETTE['orange']),
)


def swot_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("swot") or {}
    boxes = "".join(
        _box(label, _bullets(_items(data.get(key)), limit=6), color)
        for key, label, color in _SWOT_QUADRANTS
    )
    return _page(mapping, ctx, "Análise SWOT", "Forças, Fraquezas, Oportunidades e Ameaças",
                 f'<div class="im-grid-2">{boxes}</div>')


def tam_sam_som_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("tamSamSom") or {}
    blocks = "".join(
        f'<div class="im-accent"><div style="font-size:10px;font-weight:700;color:{PALETTE["muted"]};'
        f'margin-bottom:6px;">{label}</div><div style="font-size:28px;font-weight:300;'
        f'color:{PALETTE["navy"]};">{_esc(data.get(key))}</div></div>'
        for key, label in (
            ("tam", "TAM - Total Addressable Market"),
            ("sam", "SAM - Serviceable Available Market"),
            ("som", "SOM - Serviceable Obtainable Market"),
        )
    )
    if data.get("cagr"):
        blocks += f'<p class="im-text"><strong>CAGR:</strong> {_esc(data.get("cagr"))}</p>'
    return _page(mapping, ctx, "TAM SAM SOM", "Dimensionamento de Mercado", blocks)


def blue_ocean_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("blueOcean") or {}
    boxes = "".join(
        _box(label, _bullets(_items(data.get(key))), color)
        for key, label, color in (
            ("eliminate", "Eliminar", PALETTE['red']),
            ("reduce", "Reduzir", PALETTE['orange']),
            ("raise", "Elevar", PALETTE['cyan']),
            ("create", "Criar", PALETTE['green']),
        )
    )
    return _page(mapping, ctx, "Blue Ocean Strategy", "Framework ERRC", f'<div class="im-grid-2">{boxes}</div>')


def benchmarking_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("benchmarking") or {}
    body = (
        f'<div class="im-grid-3">'
        f'{_box("Competidores Analisados", _bullets(_items(data.get("competitorsAnalyzed"))))}'
        f'{_box("Gaps de Performance", _bullets(_items(data.get("performanceGaps")), "!"), PALETTE["red"])}'
        f'{_box("Melhores Práticas", _bullets(_items(data.get("bestPractices")), "→"), PALETTE["green"])}'
        f'</div>'
    )
    return _page(mapping, ctx, "Benchmarking Competitivo", "Análise Comparativa", body)


def okrs_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("okrs") or {}
    periods = _items(data.get("plan90Days")) or _items(data.get("quarters"))
    boxes = []
    for period in periods[:3]:
        if not isinstance(period, dict):
            continue
        heading = period.get("month") or period.get("quarter") or ""
        results = [
            kr.get("description") if isinstance(kr, dict) else kr
            for kr in _items(period.get("keyResults"))
        ]
        content = f'<p class="im-text" style="font-weight:600;">{_esc(period.get("objective"))}</p>'
        content += _bullets(results, "→")
        boxes.append(_box(heading, content, PALETTE['gold']))
    body = f'<div class="im-grid-3">{"".join(boxes)}</div>'
    if data.get("totalInvestment"):
        body += (f'<p class="im-text" style="margin-top:12px;"><strong>Investimento total:</strong> '
                 f'{_esc(data.get("totalInvestment"))}</p>')
    return _page(mapping, ctx, "OKRs Estratégicos", "Objetivos e Resultados-Chave", body)


def bsc_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("bsc") or {}
    boxes = "".join(
        _box(label, _bullets(_items(data.get(key)), limit=5), PALETTE['gold'])
        for key, label in (
            ("financial", "Financeira"),
            ("customer", "Clientes"),
            ("internal_processes", "Processos Internos"),
            ("learning_growth", "Aprendizado e Crescimento"),
        )
    )
    return _page(mapping, ctx, "Projeções Financeiras", "Balanced Scorecard",
                 f'<div class="im-grid-2">{boxes}</div>')


def _loop_box(title: str, loop: Any, color: str) -> str:
    if not isinstance(loop, dict):
        return _box(title, f'<p class="im-text">{_esc(loop)}</p>', color)
    content = f'<p class="im-text" style="font-weight:600;">{_esc(loop.get("name"))}</p>'
    content += _bullets(_items(loop.get("steps")), "→")
    if loop.get("bottleneck"):
        content += f'<p class="im-text"><strong>Gargalo:</strong> {_esc(loop.get("bottleneck"))}</p>'
    return _box(title, content, color)


def growth_loops_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("growthHacking") or {}
    body = (
        f'<div class="im-grid-2">'
        f'{_loop_box("LEAP - Aquisição", data.get("leap_loop"), PALETTE["cyan"])}'
        f'{_loop_box("SCALE - Monetização", data.get("scale_loop"), PALETTE["green"])}'
        f'</div>'
    )
    return _page(mapping, ctx, "Growth Hacking Loops", "Motores de Crescimento", body)


def risk_matrix_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("decisionMatrix") or {}
    rows = []
    for rec in _items(data.get("priority_recommendations"))[:6]:
        if not isinstance(rec, dict):
            rec = {"title": rec}
        rows.append(
            f'<tr><td>{_esc(rec.get("priority"))}</td><td style="font-weight:600;">{_esc(rec.get("title"))}</td>'
            f'<td>{_esc(rec.get("timeline"))}</td><td>{_esc(rec.get("budget"))}</td></tr>'
        )
    body = ""
    if data.get("final_recommendation"):
        body += (f'<div class="im-accent"><p class="im-text"><strong>Recomendação final:</strong> '
                 f'{_esc(data.get("final_recommendation"))}</p></div>')
    body += (f'<table class="im-table"><tr><th>#</th><th>Recomendação</th><th>Prazo</th><th>Orçamento</th></tr>'
             f'{"".join(rows)}</table>')
    return _page(mapping, ctx, "Matriz de Riscos", "Alternativas e Prioridades", body)


def _scenario_box(title: str, scenario: Any, color: str) -> str:
    if isinstance(scenario, dict):
        heading = title
        if scenario.get("probability"):
            heading = f"{title} ({scenario.get('probability')})"
        content = f'<p class="im-text">{_esc(scenario.get("description"))}</p>'
        content += _bullets(_items(scenario.get("required_actions")), "→", 3)
        return _box(heading, content, color)
    return _box(title, f'<p class="im-text">{_esc(scenario)}</p>', color)


def scenarios_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("scenarios") or {}
    body = (
        f'<div class="im-grid-3">'
        f'{_scenario_box("Cenário Otimista", data.get("optimistic"), PALETTE["green"])}'
        f'{_scenario_box("Cenário Realista", data.get("realist"), PALETTE["amber"])}'
        f'{_scenario_box("Cenário Pessimista", data.get("pessimistic"), PALETTE["red"])}'
        f'</div>'
    )
    return _page(mapping, ctx, "Cenários Futuros", "Análise de Cenários", body)


def recommendations_page(mapping: PageMapping, ctx: ReportContext) -> str:
    data = ctx.framework("synthesis") or {}
    body = ""
    if data.get("overallRecommendation"):
        body += (f'<div class="im-accent"><p class="im-text" style="font-size:10px;">'
                 f'{_esc(data.get("overallRecommendation"))}</p></div>')
    body += (
        f'<div class="im-grid-2">'
        f'{_box("Prioridades", _bullets(_items(data.get("strategicPriorities")), "→"), PALETTE["gold"])}'
        f'{_box("Roadmap", _bullets(_items(data.get("roadmap")), "•"))}'
        f'</div>'
    )
    return _page(mapping, ctx, "Recomendações Estratégicas", "Síntese e Próximos Passos", body)


def appendix_page(mapping: PageMapping, ctx: ReportContext) -> str:
    present = [label for label, key in TOC_ENTRIES if ctx.framework(key)]
    body = (
        '<p class="im-text" style="margin-bottom:12px;">Este relatório combina dados públicos, '
        'informações fornecidas pela empresa e análise assistida por inteligência artificial, '
        'revisada por especialistas.</p>'
        f'{_box("Frameworks aplicados", _bullets(present) or "<p class=im-text>—</p>", PALETTE["gold"])}'
    )
    return _page(mapping, ctx, "Apêndice e Metodologia", "Fontes e Métodos", body)


def placeholder_page(mapping: PageMapping, ctx: ReportContext) -> str:
    body = (
        f'<div style="height:100%;display:flex;align-items:center;justify-content:center;'
        f'text-align:center;color:{PALETTE["muted"]};"><div><div style="font-size:44px;margin-bottom:12px;">📊</div>'
        f'<div style="font-size:12px;">Conteúdo em desenvolvimento</div></div></div>'
    )
    return _page(mapping, ctx, mapping.title, "Em Desenvolvimento", body)


# =============================================================================
# DISPATCH
# =============================================================================


def _always(page_number: int) -> Predicate:
    return lambda mapping, ctx: mapping.page_number == page_number


def _with_data(page_number: int, framework: str) -> Predicate:
    def predicate(mapping: PageMapping, ctx: ReportContext) -> bool:
        data = ctx.framework(framework)
        return mapping.page_number == page_number and bool(data) and isinstance(data, dict)
    return predicate


PAGE_RULES: Tuple[PageRule, ...] = (
    PageRule("cover", _always(1), cover_page),
    PageRule("exec_summary", _with_data(2, "synthesis"), exec_summary_page),
    PageRule("toc", _always(3), toc_page),
    PageRule("divider", lambda mapping, ctx: mapping.is_divider, divider_page),
    PageRule("pestel_pes", _with_data(5, "pestel"), pestel_pes_page),
    PageRule("pestel_tel", _with_data(6, "pestel"), pestel_tel_page),
    PageRule("porter", _with_data(7, "porter"), porter_page),
    PageRule("swot", _with_data(8, "swot"), swot_page),
    PageRule("tam_sam_som", _with_data(9, "tamSamSom"), tam_sam_som_page),
    PageRule("blue_ocean", _with_data(11, "blueOcean"), blue_ocean_page),
    PageRule("benchmarking", _with_data(13, "benchmarking"), benchmarking_page),
    PageRule("okrs", _with_data(15, "okrs"), okrs_page),
    PageRule("bsc", _with_data(16, "bsc"), bsc_page),
    PageRule("growth_loops", _with_data(17, "growthHacking"), growth_loops_page),
    PageRule("risk_matrix", _with_data(20, "decisionMatrix"), risk_matrix_page),
    PageRule("scenarios", _with_data(21, "scenarios"), scenarios_page),
    PageRule("recommendations", _with_data(23, "synthesis"), recommendations_page),
    PageRule("appendix", _always(24), appendix_page),
)

DEFAULT_RULE = PageRule("placeholder", lambda mapping, ctx: True, placeholder_page)


def select_rule(mapping: PageMapping, ctx: ReportContext) -> PageRule:
    for rule in PAGE_RULES:
        if rule.predicate(mapping, ctx):
            return rule
    return DEFAULT_RULE


def render_page(page_number: int, ctx: ReportContext) -> RenderedPage:
    """
    Render one report page.

    Raises:
        ValueError: If page_number is outside 1..TOTAL_PAGES.
    """
    mapping = get_page_mapping(page_number)
    if mapping is None:
        raise ValueError(f"Page {page_number} is outside 1..{TOTAL_PAGES}")

    rule = select_rule(mapping, ctx)
    try:
        markup = rule.renderer(mapping, ctx)
    except (AttributeError, TypeError, ValueError, KeyError):
        # Malformed framework payloads fall back to the placeholder
        logger.warning("Page %s (%s) failed to render; using placeholder",
                       page_number, rule.name, exc_info=True)
        rule = DEFAULT_RULE
        markup = placeholder_page(mapping, ctx)

    return RenderedPage(
        page_number=page_number,
        title=mapping.title,
        template_file=mapping.template_file,
        html=markup,
        is_placeholder=rule is DEFAULT_RULE,
        is_divider=mapping.is_divider,
    )


def build_context(
    analysis: Optional[Dict[str, Any]],
    company_name: str = "",
    industry: Optional[str] = None,
    market: Optional[str] = None,
    report_date: Union[str, date, datetime, None] = None,
    version: int = 1,
) -> ReportContext:
    return ReportContext(
        analysis=analysis or {},
        company_name=company_name or "",
        industry=industry or "",
        market=market or "",
        date=format_report_date(report_date),
        version=version or 1,
    )


def render_report(ctx: ReportContext) -> List[RenderedPage]:
    """All TOTAL_PAGES pages, in order."""
    return [render_page(mapping.page_number, ctx) for mapping in PAGE_MAPPINGS]


def render_report_html(pages: List[RenderedPage], title: str = "Relatório Estratégico") -> str:
    """Wrap rendered pages into a printable standalone document."""
    frames = "".join(
        f'{page.html}<div class="im-counter">Page {page.page_number} of {TOTAL_PAGES}</div>'
        for page in pages
    )
    return (
        f'<!DOCTYPE html><html lang="pt-BR"><head><meta charset="utf-8">'
        f'<title>{_esc(title)}</title><style>{REPORT_CSS}'
        f'@page {{ size: {PAGE_WIDTH}px {PAGE_HEIGHT}px; margin: 0; }}'
        f'@media print {{ .im-counter {{ display: none; }} body {{ background: #FFFFFF; }} }}'
        f'</style></head><body>{frames}</body></html>'
    )
