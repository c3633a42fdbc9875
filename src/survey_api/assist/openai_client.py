"""
OpenAI HTTP adapter for embeddings and chat completions.

Text only; every transport or provider failure surfaces as ``AssistError``.
"""

from typing import Any

import httpx

from survey_api.shared.correlation import inject_correlation_headers
from survey_api.shared.exceptions import AssistError
from survey_api.shared.logging import get_logger

logger = get_logger(__name__)

# text-embedding-3-small
DEFAULT_EMBEDDING_DIMENSION = 1536

SYSTEM_PROMPT = (
    "You help survey authors write clear survey questions and summaries. "
    "Use the user's memos when they are relevant and keep the answer short."
)


class OpenAIAssistClient:
    """Embedder and text generator backed by the OpenAI REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        embedding_model: str = "text-embedding-3-small",
        chat_model: str = "gpt-4.1-mini",
        timeout_seconds: float = 30.0,
        dimension: int = DEFAULT_EMBEDDING_DIMENSION,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._embedding_model = embedding_model
        self._chat_model = chat_model
        self._timeout_seconds = timeout_seconds
        self._dimension = dimension
        self._transport = transport

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        data = await self._post(
            "/embeddings",
            {"model": self._embedding_model, "input": text},
        )
        try:
            return [float(v) for v in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise AssistError(message="Malformed embedding response") from e

    async def generate(self, prompt: str, context: list[str]) -> str:
        messages: list[dict[str, str]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        if context:
            memos = "\n".join(f"- {snippet}" for snippet in context)
            messages.append({"role": "system", "content": f"User memos:\n{memos}"})
        messages.append({"role": "user", "content": prompt})

        data = await self._post(
            "/chat/completions",
            {"model": self._chat_model, "messages": messages, "temperature": 0.7},
        )
        try:
            return str(data["choices"][0]["message"]["content"])
        except (KeyError, IndexError, TypeError) as e:
            raise AssistError(message="Malformed completion response") from e

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = inject_correlation_headers(
            {
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            }
        )
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                r = await client.post(path, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(
                "OpenAI request failed",
                extra={"path": path, "error": str(e)},
            )
            raise AssistError() from e

        if r.status_code != 200:
            logger.warning(
                "OpenAI error response",
                extra={"path": path, "status_code": r.status_code},
            )
            raise AssistError(
                message=f"OpenAI error {r.status_code}",
                details={"status_code": r.status_code},
            )
        return r.json()
