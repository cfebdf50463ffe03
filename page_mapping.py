"""
Imensiah - Report Page Mapping
==============================
Static layout of the 24-page strategic report: which template renders each
page, its title, and which framework (if any) feeds it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

TOTAL_PAGES = 24


@dataclass(frozen=True)
class PageMapping:
    page_number: int
    template_file: str
    title: str
    framework: Optional[str] = None
    is_divider: bool = False
    section_label: Optional[str] = None
    section_subtitle: Optional[str] = None


PAGE_MAPPINGS: Tuple[PageMapping, ...] = (
    PageMapping(1, "01_cover.html", "Cover Page"),
    PageMapping(2, "02_exec_summary.html", "Executive Summary", "synthesis"),
    PageMapping(3, "03_toc.html", "Table of Contents"),
    PageMapping(4, "03a_divider_part1.html", "Part 1: Environmental Analysis",
                is_divider=True, section_label="Parte 1", section_subtitle="Análise Ambiental"),
    PageMapping(5, "04a_pestel_pes.html", "PESTEL Analysis - Political, Economic, Social", "pestel"),
    PageMapping(6, "04b_pestel_tel.html", "PESTEL Analysis - Technological, Environmental, Legal", "pestel"),
    PageMapping(7, "05a_porter_7forces.html", "Porter's 7 Forces Analysis", "porter"),
    PageMapping(8, "06_swot.html", "SWOT Analysis", "swot"),
    PageMapping(9, "07_tam_sam_som.html", "Market Sizing - TAM SAM SOM", "tamSamSom"),
    PageMapping(10, "08a_divider_part2.html", "Part 2: Strategic Positioning",
                is_divider=True, section_label="Parte 2", section_subtitle="Posicionamento Estratégico"),
    PageMapping(11, "08_ocean.html", "Blue Ocean Strategy", "blueOcean"),
    PageMapping(12, "10_business_model.html", "Business Model Canvas"),
    PageMapping(13, "11_competitive_analysis.html", "Competitive Benchmarking", "benchmarking"),
    PageMapping(14, "11a_divider_part3.html", "Part 3: Execution Roadmap",
                is_divider=True, section_label="Parte 3", section_subtitle="Roadmap de Execução"),
    PageMapping(15, "12a_okrs_quarterly.html", "Strategic OKRs - Quarterly Breakdown", "okrs"),
    PageMapping(16, "12_financial_projections.html", "Financial Projections", "bsc"),
    PageMapping(17, "13a_growth_loops.html", "Growth Hacking Loops", "growthHacking"),
    PageMapping(18, "13_gtm_strategy.html", "Go-to-Market Strategy"),
    PageMapping(19, "14a_divider_part4.html", "Part 4: Risk Assessment & Planning",
                is_divider=True, section_label="Parte 4", section_subtitle="Riscos e Planejamento"),
    PageMapping(20, "14_risk_assessment.html", "Risk Assessment Matrix", "decisionMatrix"),
    PageMapping(21, "15a_scenarios.html", "Future Scenarios Analysis", "scenarios"),
    PageMapping(22, "15_roadmap.html", "Strategic Roadmap"),
    PageMapping(23, "16a_recommendations_review.html", "Strategic Recommendations", "synthesis"),
    PageMapping(24, "16_appendix.html", "Appendix & Methodology"),
)


def get_page_mapping(page_number: int) -> Optional[PageMapping]:
    for mapping in PAGE_MAPPINGS:
        if mapping.page_number == page_number:
            return mapping
    return None


def get_framework_pages(framework: str) -> List[int]:
    """Page numbers fed by a framework, in report order ([] if none)."""
    return [m.page_number for m in PAGE_MAPPINGS if m.framework == framework]


def get_divider_pages() -> List[int]:
    return [m.page_number for m in PAGE_MAPPINGS if m.is_divider]


def validate_page_mappings(mappings: Tuple[PageMapping, ...] = PAGE_MAPPINGS) -> None:
    """Raise ValueError unless pages 1..TOTAL_PAGES each appear exactly once."""
    numbers = [m.page_number for m in mappings]
    if len(numbers) != TOTAL_PAGES:
        raise ValueError(f"Expected {TOTAL_PAGES} page mappings, found {len(numbers)}")
    if sorted(numbers) != list(range(1, TOTAL_PAGES + 1)):
        raise ValueError(f"Page numbers must be exactly 1..{TOTAL_PAGES}: {numbers}")


validate_page_mappings()
