import json
import logging

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from housing.core.config import settings
from housing.core.exceptions import ExternalServiceError, ServiceUnavailableError
from housing.schemas.report import DashboardStats

logger = logging.getLogger(__name__)

INSIGHTS_SYSTEM_PROMPT = (
    "You are a data analyst for a residential compound's housing office. "
    "Given occupancy statistics, give 3-5 short, practical insights and recommendations. "
    "Answer in Arabic."
)


def generate_insights(stats: DashboardStats) -> str:
    """Hand the dashboard stats to the LLM and return its reply verbatim."""
    if not settings.OPENAI_API_KEY:
        raise ServiceUnavailableError("OpenAI API key is not configured. Set OPENAI_API_KEY in .env.")

    llm = ChatOpenAI(
        model=settings.OPENAI_MODEL,
        api_key=settings.OPENAI_API_KEY,
        max_tokens=1024,
    )
    payload = json.dumps(stats.model_dump(), indent=2, ensure_ascii=False)
    try:
        response = llm.invoke([
            SystemMessage(content=INSIGHTS_SYSTEM_PROMPT),
            HumanMessage(content=f"Analyse these statistics:\n{payload}"),
        ])
    except Exception as e:
        logger.exception("Insights request failed")
        raise ExternalServiceError(f"Insights generation failed: {e}")
    return response.content if hasattr(response, "content") else str(response)
