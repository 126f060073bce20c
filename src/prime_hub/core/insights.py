"""
Dashboard insights.

Reads the data behind a Metabase card and asks a chat model to explain it
for school managers. Metabase problems are reported as data-quality
issues; only a chat model failure fails the request.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from prime_hub.config import AppSettings
from prime_hub.exceptions import MissingParameterError, PrimeHubError, UpstreamError
from prime_hub.services.metabase import CardResult, MetabaseClient
from .dashboards import DashboardCategory

logger = logging.getLogger(__name__)

_DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-1.5-flash",
}

FALLBACK_ANSWER = "Não foi possível gerar uma resposta."

BASE_PROMPT = (
    "Você é um analista de dados do Proesc Prime, especializado em gestão escolar.\n"
    "Analise SOMENTE os dados exibidos no dashboard atual, com os filtros aplicados. "
    "Não faça análises gerais da escola."
)

CATEGORY_FOCUS = {
    DashboardCategory.FINANCIAL: "ANÁLISE FINANCEIRA DOS DADOS FILTRADOS",
    DashboardCategory.AGENDA: "ANÁLISE DOS AGENDAMENTOS FILTRADOS",
    DashboardCategory.REGISTRAR: "ANÁLISE ADMINISTRATIVA DOS DADOS FILTRADOS",
    DashboardCategory.PEDAGOGICAL: "ANÁLISE PEDAGÓGICA DOS DADOS FILTRADOS",
}

ANALYSIS_STRUCTURE = "\n".join(
    [
        "Estruture a resposta em:",
        "1. Resumo dos dados atuais: período, filtros ativos e principal conclusão.",
        "2. Análise dos dados apresentados: padrões e comparações dentro do escopo.",
        "3. Insights: pontos de atenção e oportunidades do segmento analisado.",
        "4. Ações: 3-4 recomendações práticas e filtros para aprofundar a análise.",
        "Use os números exatos dos dados apresentados.",
    ]
)

NO_DATA_NOTICE = (
    "Dados do Metabase não estão disponíveis no momento. A análise será baseada "
    "em conhecimento geral sobre gestão educacional."
)


class ChatModelFactory:
    @staticmethod
    def get_chat_model(settings: AppSettings) -> BaseChatModel:
        provider = settings.insights.provider.lower()
        model = settings.insights.model_name
        api_key = settings.insights.api_key

        if provider == "openai":
            from langchain_openai import ChatOpenAI

            return ChatOpenAI(
                model=model or _DEFAULT_MODELS["openai"],
                api_key=api_key or os.getenv("OPENAI_API_KEY"),
                temperature=settings.insights.temperature,
                max_tokens=settings.insights.max_output_tokens,
            )

        if provider == "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI

            return ChatGoogleGenerativeAI(
                model=model or _DEFAULT_MODELS["gemini"],
                google_api_key=api_key or os.getenv("GOOGLE_API_KEY"),
                temperature=settings.insights.temperature,
                max_output_tokens=settings.insights.max_output_tokens,
            )

        if provider == "fake":
            return FakeListChatModel(responses=["Resumo dos dados atuais."])

        raise ValueError(f"Unsupported insights provider: {provider}")


def build_system_prompt(category: Optional[DashboardCategory]) -> str:
    focus = CATEGORY_FOCUS.get(category, "ANÁLISE DOS DADOS FILTRADOS")
    return f"{BASE_PROMPT}\n\n{focus}\n\n{ANALYSIS_STRUCTURE}"


def build_user_prompt(
    question: str,
    card: CardResult,
    params: Optional[Dict[str, Any]] = None,
    category: Optional[DashboardCategory] = None,
    dashboard_url: Optional[str] = None,
    locale: Optional[str] = None,
) -> str:
    context: List[str] = []
    if params:
        context.append(f"Filtros aplicados: {json.dumps(params, ensure_ascii=False)}")
    if category:
        context.append(f"Tipo de dashboard: {category.value}")
    if card.columns:
        context.append(f"Colunas: {', '.join(card.columns)}")
    if card.rows:
        context.append(f"Dados: {json.dumps(card.rows, ensure_ascii=False, default=str)}")
    if dashboard_url:
        context.append(f"Dashboard ativo: {dashboard_url}")

    parts = [f"Pergunta: {question}"]
    if context:
        parts.append("Dados disponíveis:\n" + "\n".join(context))
    else:
        parts.append(NO_DATA_NOTICE)
    if locale:
        parts.append(f"Idioma: {locale}")
    return "\n\n".join(parts)


def data_confidence(card: CardResult) -> int:
    if card.columns and card.rows:
        return 100
    if card.columns or card.rows:
        return 50
    return 0


class InsightsService:
    def __init__(self, chat_model: BaseChatModel, metabase: MetabaseClient):
        self.chat_model = chat_model
        self.metabase = metabase

    async def _load_card(
        self, card_id: Optional[int], params: Optional[Dict[str, Any]], issues: List[str]
    ) -> CardResult:
        if not card_id:
            issues.append("ID do card não fornecido")
        if not self.metabase.is_configured:
            issues.append("Credenciais do Metabase não configuradas")
        if not card_id or not self.metabase.is_configured:
            return CardResult()

        try:
            card = await self.metabase.query_card(card_id, params)
        except PrimeHubError as e:
            logger.warning(
                "Metabase card query failed",
                extra={"card_id": card_id, "error": e.message},
            )
            issues.append(f"Erro ao consultar Metabase: {e.message}")
            return CardResult()

        if not card.columns:
            issues.append("Nenhuma coluna retornada")
        if not card.rows:
            issues.append("Nenhuma linha de dados retornada")
        return card

    async def explain(
        self,
        question: Optional[str],
        card_id: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
        dashboard_url: Optional[str] = None,
        locale: Optional[str] = None,
        dashboard_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not question or not question.strip():
            raise MissingParameterError("Missing 'question'")

        issues: List[str] = []
        card = await self._load_card(card_id, params, issues)
        category = DashboardCategory.parse(dashboard_type)
        confidence = data_confidence(card)

        messages = [
            SystemMessage(content=build_system_prompt(category)),
            HumanMessage(
                content=build_user_prompt(
                    question.strip(), card, params, category, dashboard_url, locale
                )
            ),
        ]
        try:
            reply = await self.chat_model.ainvoke(messages)
        except Exception as e:
            logger.error(
                "Insights chat model failed",
                extra={"card_id": card_id, "dashboard_type": dashboard_type},
                exc_info=True,
            )
            raise UpstreamError(f"Insights model error: {e}") from e

        answer = reply.content if isinstance(reply.content, str) else ""
        return {
            "answer": answer.strip() or FALLBACK_ANSWER,
            "dataQuality": {
                "hasMetabaseData": confidence > 0,
                "confidence": confidence,
                "metabaseStatus": "success" if confidence > 0 else "no_data",
                "issues": issues,
            },
            "metadata": {
                "columnsCount": len(card.columns),
                "rowsCount": len(card.rows),
                "cardId": card_id,
                "dashboardUrl": dashboard_url,
                "dashboardType": category.value if category else None,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }
