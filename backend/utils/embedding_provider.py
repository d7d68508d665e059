"""
Query embedding client
Calls an OpenAI-compatible embeddings endpoint over HTTP
"""
import logging
from typing import List, Optional

import httpx

from utils import settings
from utils.vector_math import sanitize_embedding

logger = logging.getLogger(__name__)


class EmbeddingProvider:
    """
    Fetch a query embedding, or None when the service cannot provide one

    A missing API key is a supported configuration: search then runs in
    text-only mode.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = settings.EMBEDDING_MODEL,
        api_url: str = settings.EMBEDDING_API_URL,
        timeout: float = settings.EMBEDDING_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def get_query_embedding(self, query: str) -> Optional[List[float]]:
        """
        Generate embedding for search query

        Args:
            query: Search query string

        Returns:
            The embedding vector as floats, or None
        """
        if not self.is_configured:
            logger.warning("OPENAI_API_KEY is not configured. Falling back to text-only smart search.")
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {self.api_key}",
                    },
                    json={"input": query, "model": self.model},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Embedding request failed, continuing without vector search: {e}")
            return None

        if not response.is_success:
            logger.warning(f"Embedding request failed: {response.status_code} {response.text}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Embedding response was not valid JSON: {e}")
            return None

        embedding = _extract_embedding(payload)
        if not embedding:
            logger.warning("Embedding response did not include an embedding vector.")
            return None

        return embedding


def _extract_embedding(payload) -> Optional[List[float]]:
    """Read data[0].embedding from the response body"""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    embedding = data[0].get("embedding")
    if not isinstance(embedding, list):
        return None
    return sanitize_embedding(embedding)


def get_embedding_provider() -> EmbeddingProvider:
    """Build the embedding provider from settings"""
    return EmbeddingProvider(api_key=settings.OPENAI_API_KEY)
