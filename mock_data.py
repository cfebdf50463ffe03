"""
Imensiah - Mock Data
====================
Sample submissions, enrichments and analyses for demo mode and tests, plus
an in-memory backend that answers the same calls as BackendClient.

Demo processing is simulated on fetch: each ``get_workflow`` call moves a
processing enrichment to completed and a generating analysis to completed,
standing in for the background workers of the real backend.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from backend_client import BackendError
from wizard_engine import WIZARD_STEPS


SAMPLE_SUBMISSIONS: List[Dict[str, Any]] = [
    {
        'id': 'sub-001',
        'companyName': 'TechFlow Soluções',
        'cnpj': '12.345.678/0001-90',
        'industry': 'Tecnologia',
        'website': 'https://techflow.com.br',
        'email': 'contato@techflow.com.br',
        'strategicGoal': 'Expandir para o mercado de médias empresas',
        'targetMarket': 'Brasil',
        'createdAt': '2026-09-02T10:30:00Z',
    },
    {
        'id': 'sub-002',
        'company_name': 'Verde Agro Ltda',
        'industry': 'Agronegócio',
        'website': 'https://verdeagro.com.br',
        'strategic_goal': 'Digitalizar a cadeia de distribuição',
        'target_market': 'Centro-Oeste',
        'created_at': '2026-09-20T14:00:00Z',
    },
    {
        'id': 'sub-003',
        'companyName': 'Clínica Bem Viver',
        'industry': 'Saúde',
        'targetMarket': 'São Paulo',
        'createdAt': '2026-10-05T09:00:00Z',
    },
]

SAMPLE_ENRICHMENT_DATA: Dict[str, Any] = {
    'profile_overview': {
        'legal_name': 'TechFlow Soluções em Software Ltda',
        'website': 'https://techflow.com.br',
        'foundation_year': '2015',
        'headquarters': 'São Paulo, SP',
        'description': 'Plataforma SaaS de automação de processos para PMEs.',
    },
    'financials': {
        'employees_range': '51-200',
        'revenue_estimate': 'R$ 20-50 milhões',
        'business_model': 'SaaS B2B por assinatura',
    },
    'market_position': {
        'sector': 'Software empresarial',
        'target_audience': 'Pequenas e médias empresas',
        'value_proposition': 'Automação sem código com implantação em dias',
    },
    'strategic_assessment': {
        'digital_maturity': 4,
        'strengths': ['Produto maduro', 'Baixo churn'],
        'weaknesses': ['Marca pouco conhecida fora de SP'],
    },
    'competitive_landscape': {
        'competitors': ['Pipefy', 'Zapier', 'Monday.com'],
        'market_share_status': 'Desafiante regional',
    },
    'data_sources': ['Receita Federal', 'LinkedIn', 'Site institucional'],
}

# Snake-case framework keys on purpose: this is how the public endpoint ships them.
SAMPLE_FRAMEWORKS: Dict[str, Any] = {
    'synthesis': {
        'executive_summary': 'A TechFlow tem produto sólido e espaço para crescer no '
                             'segmento de médias empresas com uma estratégia de canais.',
        'key_findings': [
            'Mercado de automação cresce 18% ao ano no Brasil',
            'Concorrentes globais têm baixa aderência a processos locais',
            'Base atual concentra 70% da receita em São Paulo',
        ],
        'strategic_priorities': [
            'Construir rede de parceiros revendedores',
            'Lançar plano Enterprise',
            'Investir em marca regional',
        ],
        'roadmap': ['T1: parceiros piloto', 'T2: plano Enterprise', 'T3: expansão Sul'],
        'overall_recommendation': 'Priorizar canais indiretos antes de ampliar o time de vendas.',
    },
    'pestel': {
        'political': ['Programas públicos de digitalização de PMEs'],
        'economic': ['Juros altos restringem investimento em TI', 'Câmbio favorece fornecedores locais'],
        'social': ['Adoção crescente de trabalho híbrido'],
        'technological': ['IA generativa reduz custo de automação'],
        'environmental': ['Pressão por processos sem papel'],
        'legal': ['LGPD exige trilhas de auditoria'],
        'summary': 'Ambiente favorável, com atenção ao custo de capital.',
    },
    'porter': {
        'forces': [
            {'force': 'Rivalidade entre Concorrentes', 'intensity': 'Alta',
             'description': 'Players globais com forte marketing'},
            {'force': 'Ameaça de Novos Entrantes', 'intensity': 'Média',
             'description': 'Baixa barreira técnica, alta barreira de distribuição'},
            {'force': 'Poder de Barganha dos Clientes', 'intensity': 'Média',
             'description': 'PMEs sensíveis a preço'},
        ],
        'overall_attractiveness': 'Média-Alta',
        'summary': 'Setor atrativo para quem domina canais locais.',
    },
    'swot': {
        'strengths': [
            {'content': 'Implantação em dias', 'confidence': 'Alta', 'source': 'dados da empresa'},
            {'content': 'Suporte em português', 'confidence': 'Alta', 'source': 'análise de mercado'},
        ],
        'weaknesses': [
            {'content': 'Marca pouco conhecida', 'confidence': 'Média', 'source': 'análise de mercado'},
        ],
        'opportunities': [
            {'content': 'Médias empresas sub-atendidas', 'confidence': 'Média', 'source': 'pesquisa setorial'},
        ],
        'threats': [
            {'content': 'Entrada de players globais com preço local', 'confidence': 'Baixa',
             'source': 'análise de mercado'},
        ],
        'summary': 'Posição defensável com investimento em marca.',
    },
    'tam_sam_som': {
        'tam': 'R$ 12 bi',
        'sam': 'R$ 2,4 bi',
        'som': 'R$ 120 mi',
        'cagr': '18%',
        'assumptions': ['PMEs com mais de 50 funcionários', 'Ticket médio de R$ 2.000/mês'],
        'confidence_level': 'Média',
        'summary': 'Mercado amplo, SOM realista em 3 anos.',
    },
    'benchmarking': {
        'competitors_analyzed': ['Pipefy', 'Zapier', 'Monday.com'],
        'performance_gaps': ['Integrações nativas com ERPs nacionais'],
        'best_practices': ['Templates por setor', 'Comunidade de usuários'],
        'summary': 'Diferenciar por integrações locais.',
    },
    'blue_ocean': {
        'eliminate': ['Contratos anuais obrigatórios'],
        'reduce': ['Complexidade de configuração'],
        'raise': ['Integrações com ERPs nacionais'],
        'create': ['Consultoria de processos inclusa'],
        'summary': 'Valor percebido acima do preço.',
    },
    'growth_hacking': {
        'leap_loop': {
            'name': 'Indicação de parceiros', 'type': 'aquisição',
            'steps': ['Parceiro implanta', 'Cliente indica', 'Parceiro recebe comissão'],
            'metrics': ['CAC por canal'], 'bottleneck': 'Treinamento de parceiros',
        },
        'scale_loop': {
            'name': 'Expansão de assentos', 'type': 'monetização',
            'steps': ['Time adota', 'Novas áreas pedem acesso', 'Upgrade de plano'],
            'metrics': ['Net revenue retention'], 'bottleneck': 'Governança de acessos',
        },
        'summary': 'Dois loops complementares.',
    },
    'scenarios': {
        'optimistic': {'name': 'Aceleração', 'probability': '25%',
                       'description': 'Parceiros trazem 40% das vendas',
                       'required_actions': ['Programa de certificação']},
        'realist': {'name': 'Crescimento orgânico', 'probability': '55%',
                    'description': 'Crescimento de 30% ao ano',
                    'required_actions': ['Plano Enterprise']},
        'pessimistic': {'name': 'Pressão de preço', 'probability': '20%',
                        'description': 'Concorrente global reduz preços',
                        'required_actions': ['Proteger base instalada']},
        'mitigation_tactics': ['Contratos com desconto por fidelidade'],
        'early_warning_signals': ['Aumento de churn em contas pequenas'],
        'summary': 'Cenário realista é o mais provável.',
    },
    'okrs': {
        'plan_90_days': [
            {'month': 'Mês 1', 'focus': 'Fundação', 'objective': 'Estruturar programa de parceiros',
             'key_results': ['10 parceiros assinados'], 'investment': 'R$ 80 mil'},
            {'month': 'Mês 2', 'focus': 'Crescimento', 'objective': 'Lançar plano Enterprise',
             'key_results': ['5 clientes piloto'], 'investment': 'R$ 120 mil'},
            {'month': 'Mês 3', 'focus': 'Consolidação', 'objective': 'Expandir para o Sul',
             'key_results': ['R$ 300 mil em novo MRR'], 'investment': 'R$ 150 mil'},
        ],
        'total_investment': 'R$ 350 mil',
        'summary': 'Plano de 90 dias focado em canais.',
    },
    'bsc': {
        'financial': ['MRR +30%'],
        'customer': ['NPS acima de 60'],
        'internal_processes': ['Implantação em até 7 dias'],
        'learning_growth': ['Certificar 100% do time de sucesso'],
        'summary': 'Indicadores balanceados para o ciclo anual.',
    },
    'decision_matrix': {
        'alternatives': ['Canais indiretos', 'Vendas diretas', 'Aquisição'],
        'criteria': ['Custo', 'Velocidade', 'Risco'],
        'final_recommendation': 'Canais indiretos',
        'priority_recommendations': [
            {'priority': 1, 'title': 'Programa de parceiros', 'description': '',
             'timeline': '90 dias', 'budget': 'R$ 200 mil'},
            {'priority': 2, 'title': 'Plano Enterprise', 'description': '',
             'timeline': '6 meses', 'budget': 'R$ 400 mil'},
        ],
        'summary': 'Canais indiretos equilibram custo e velocidade.',
    },
}

SAMPLE_ENRICHMENTS: List[Dict[str, Any]] = [
    {'id': 'enr-001', 'submissionId': 'sub-001', 'status': 'approved', 'data': SAMPLE_ENRICHMENT_DATA},
    {'id': 'enr-002', 'submission_id': 'sub-002', 'status': 'completed',
     'data': {'profile_overview': {'legal_name': 'Verde Agro Ltda', 'headquarters': 'Goiânia, GO'}}},
]

SAMPLE_ANALYSES: List[Dict[str, Any]] = [
    {
        'id': 'ana-001',
        'submission_id': 'sub-001',
        'status': 'completed',
        'version': 1,
        'is_visible_to_user': False,
        'is_blurred': True,
        'analysis': SAMPLE_FRAMEWORKS,
        'created_at': '2026-09-05T12:00:00Z',
    },
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def sample_wizard_output(code: str) -> Dict[str, Any]:
    key = {
        'tam_sam_som': 'tam_sam_som',
        'blue_ocean': 'blue_ocean',
        'growth_loops': 'growth_hacking',
        'decision_matrix': 'decision_matrix',
        'okrs_90_days': 'okrs',
        'challenge_refinement': 'synthesis',
    }.get(code, code)
    return copy.deepcopy(SAMPLE_FRAMEWORKS.get(key, {'summary': ''}))


class InMemoryBackend:
    """Stand-in for BackendClient that keeps everything in dictionaries."""

    def __init__(
        self,
        submissions: Optional[List[Dict[str, Any]]] = None,
        enrichments: Optional[List[Dict[str, Any]]] = None,
        analyses: Optional[List[Dict[str, Any]]] = None,
    ):
        self.submissions = {s['id']: copy.deepcopy(s) for s in (submissions or SAMPLE_SUBMISSIONS)}
        self.enrichments = {e['id']: copy.deepcopy(e) for e in (enrichments or SAMPLE_ENRICHMENTS)}
        self.analyses = {a['id']: copy.deepcopy(a) for a in (analyses or SAMPLE_ANALYSES)}
        self.wizards: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def _submission_of(record: Dict[str, Any]) -> Optional[str]:
        return record.get('submission_id') or record.get('submissionId')

    def _enrichment_for(self, submission_id: str) -> Optional[Dict[str, Any]]:
        return next((e for e in self.enrichments.values() if self._submission_of(e) == submission_id), None)

    def _analysis_for(self, submission_id: str) -> Optional[Dict[str, Any]]:
        return next((a for a in self.analyses.values() if self._submission_of(a) == submission_id), None)

    def _enrichment(self, enrichment_id: str) -> Dict[str, Any]:
        if enrichment_id not in self.enrichments:
            raise BackendError(f"Enriquecimento {enrichment_id} não encontrado", status_code=404)
        return self.enrichments[enrichment_id]

    def _analysis(self, analysis_id: str) -> Dict[str, Any]:
        if analysis_id not in self.analyses:
            raise BackendError(f"Análise {analysis_id} não encontrada", status_code=404)
        return self.analyses[analysis_id]

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    # ------------------------------------------------------------------
    # BackendClient surface
    # ------------------------------------------------------------------

    def list_submissions(self, page: int = 1, page_size: int = 50) -> List[Dict[str, Any]]:
        rows = list(self.submissions.values())
        start = (page - 1) * page_size
        return copy.deepcopy(rows[start:start + page_size])

    def get_workflow(self, submission_id: str):
        if submission_id not in self.submissions:
            raise BackendError(f"Submissão {submission_id} não encontrada", status_code=404)
        enrichment = self._enrichment_for(submission_id)
        analysis = self._analysis_for(submission_id)
        if enrichment and enrichment.get('status') == 'processing':
            enrichment['status'] = 'completed'
        if analysis and analysis.get('status') == 'generating':
            analysis['status'] = 'completed'
        return (
            copy.deepcopy(self.submissions[submission_id]),
            copy.deepcopy(enrichment),
            copy.deepcopy(analysis),
        )

    def approve_enrichment(self, enrichment_id: str) -> Dict[str, Any]:
        self._record('approve_enrichment', enrichment_id)
        enrichment = self._enrichment(enrichment_id)
        enrichment['status'] = 'approved'
        submission_id = self._submission_of(enrichment)
        analysis = self._analysis_for(submission_id)
        if analysis is None:
            analysis = {
                'id': f"ana-{uuid.uuid4().hex[:6]}", 'submission_id': submission_id,
                'version': 1, 'analysis': copy.deepcopy(SAMPLE_FRAMEWORKS), 'created_at': _now(),
            }
            self.analyses[analysis['id']] = analysis
        analysis.update(status='generating', is_visible_to_user=False)
        return {'status': 'approved'}

    def reopen_enrichment(self, enrichment_id: str) -> Dict[str, Any]:
        self._record('reopen_enrichment', enrichment_id)
        enrichment = self._enrichment(enrichment_id)
        enrichment['status'] = 'completed'
        analysis = self._analysis_for(self._submission_of(enrichment))
        if analysis is not None:
            analysis['is_visible_to_user'] = False
        return {'status': 'completed'}

    def update_enrichment(self, enrichment_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self._record('update_enrichment', enrichment_id)
        enrichment = self._enrichment(enrichment_id)
        enrichment['data'] = copy.deepcopy(data)
        return copy.deepcopy(enrichment)

    def approve_analysis(self, analysis_id: str) -> Dict[str, Any]:
        self._record('approve_analysis', analysis_id)
        self._analysis(analysis_id)['status'] = 'approved'
        return {'status': 'approved'}

    def reopen_analysis(self, analysis_id: str) -> Dict[str, Any]:
        self._record('reopen_analysis', analysis_id)
        self._analysis(analysis_id).update(status='completed', is_visible_to_user=False)
        return {'status': 'completed'}

    def save_analysis(self, analysis_id: str, frameworks: Dict[str, Any], version: int) -> Dict[str, Any]:
        self._record('save_analysis', analysis_id, version)
        analysis = self._analysis(analysis_id)
        analysis.update(analysis=copy.deepcopy(frameworks), version=version, updated_at=_now())
        return copy.deepcopy(analysis)

    def set_visibility(self, analysis_id: str, visible: bool) -> Dict[str, Any]:
        self._record('set_visibility', analysis_id, visible)
        self._analysis(analysis_id)['is_visible_to_user'] = bool(visible)
        return {'is_visible_to_user': bool(visible)}

    def set_blur(self, analysis_id: str, blurred: bool) -> Dict[str, Any]:
        self._record('set_blur', analysis_id, blurred)
        self._analysis(analysis_id)['is_blurred'] = bool(blurred)
        return {'is_blurred': bool(blurred)}

    def generate_access_code(self, analysis_id: str) -> str:
        self._record('generate_access_code', analysis_id)
        analysis = self._analysis(analysis_id)
        analysis['access_code'] = uuid.uuid4().hex[:8].upper()
        return analysis['access_code']

    def record_pdf_url(self, analysis_id: str, pdf_url: str) -> Dict[str, Any]:
        self._record('record_pdf_url', analysis_id, pdf_url)
        self._analysis(analysis_id)['pdf_url'] = pdf_url
        return {'pdf_url': pdf_url}

    def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self._analysis(analysis_id))

    def get_public_report(self, access_code: str) -> Dict[str, Any]:
        for analysis in self.analyses.values():
            if analysis.get('access_code') == access_code:
                report = copy.deepcopy(analysis)
                report['submission'] = copy.deepcopy(self.submissions.get(self._submission_of(analysis)))
                return report
        raise BackendError("Relatório não encontrado", status_code=404)

    # ------------------------------------------------------------------
    # Wizard
    # ------------------------------------------------------------------

    def start_wizard(self, company_id: str, challenge_id: str) -> str:
        analysis_id = f"wiz-{uuid.uuid4().hex[:6]}"
        self.wizards[analysis_id] = self._wizard_payload(analysis_id, 1)
        return analysis_id

    def _wizard_payload(self, analysis_id: str, step: int) -> Dict[str, Any]:
        spec = WIZARD_STEPS[step - 1]
        return {
            'analysis_id': analysis_id,
            'current_step': step,
            'total_steps': len(WIZARD_STEPS),
            'framework': {'step': step, 'code': spec.code, 'name': spec.name,
                          'description': f"Etapa {step}: {spec.name}",
                          'questions': [{'id': 'context', 'question': 'Algo que devemos considerar?'}]},
            'step_status': 'pending',
            'output': None,
            'previous_steps': [],
            'iteration_count': 0,
        }

    def _wizard(self, analysis_id: str) -> Dict[str, Any]:
        if analysis_id not in self.wizards:
            raise BackendError(f"Assistente {analysis_id} não encontrado", status_code=404)
        return self.wizards[analysis_id]

    def get_wizard_state(self, analysis_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self._wizard(analysis_id))

    def generate_step(self, analysis_id: str, human_context=None, human_answers=None) -> Dict[str, Any]:
        state = self._wizard(analysis_id)
        state.update(step_status='generated', human_context=human_context,
                     human_answers=human_answers or {},
                     output=sample_wizard_output(state['framework']['code']))
        return copy.deepcopy(state)

    def refine_step(self, analysis_id: str, feedback: str) -> Dict[str, Any]:
        state = self._wizard(analysis_id)
        state['iteration_count'] = state.get('iteration_count', 0) + 1
        state.update(step_status='generated', output=sample_wizard_output(state['framework']['code']))
        return copy.deepcopy(state)

    def approve_step(self, analysis_id: str) -> Dict[str, Any]:
        state = self._wizard(analysis_id)
        summary = {
            'step': state['current_step'],
            'framework_code': state['framework']['code'],
            'framework_name': state['framework']['name'],
            'status': 'approved',
            'approved_at': _now(),
        }
        previous = state.get('previous_steps', []) + [summary]
        if state['current_step'] >= len(WIZARD_STEPS):
            state.update(step_status='approved', previous_steps=previous)
        else:
            state.clear()
            state.update(self._wizard_payload(analysis_id, summary['step'] + 1), previous_steps=previous)
        return copy.deepcopy(state)

    def get_wizard_summary(self, analysis_id: str) -> Dict[str, Any]:
        state = self._wizard(analysis_id)
        done = {p['step'] for p in state.get('previous_steps', [])}
        return {
            'analysis_id': analysis_id,
            'total_steps': len(WIZARD_STEPS),
            'completed_steps': len(done),
            'frameworks': [
                {'code': s.code, 'name': s.name, 'status': 'approved' if s.step in done else 'pending'}
                for s in WIZARD_STEPS
            ],
        }
