"""
Factory for the assist backend configured by settings.
"""

from survey_api.assist.fake import FakeAssistClient
from survey_api.assist.interface import AssistClient
from survey_api.assist.openai_client import OpenAIAssistClient
from survey_api.config import Settings
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)


def create_assist_client(settings: Settings) -> AssistClient:
    """Build the assist backend for ``settings.assist_provider``.

    Raises:
        ValueError: If the OpenAI provider is selected without an API key.
    """
    if settings.assist_provider == "openai":
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when ASSIST_PROVIDER=openai")
        client: AssistClient = OpenAIAssistClient(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            embedding_model=settings.openai_embedding_model,
            chat_model=settings.openai_chat_model,
            timeout_seconds=settings.assist_timeout_seconds,
        )
    else:
        client = FakeAssistClient()

    logger.info(
        "Creating assist client",
        extra={"provider": settings.assist_provider, "dimension": client.dimension},
    )
    return client
