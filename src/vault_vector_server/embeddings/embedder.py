"""
Embedding Client

This module wraps the OpenAI embeddings API (or any compatible provider)
behind a single operation: one text in, one float vector out.

- One request per text, no batching
- No retries: any failure is raised immediately to the caller
- Strict response validation, an empty vector is a failure

The class is stateless and safe to reuse across requests.
"""

from __future__ import annotations

from typing import List, Optional
import logging
import httpx

from ..config import settings

logger = logging.getLogger("vault.embedder")


class EmbeddingError(RuntimeError):
    """Raised when embedding generation fails."""


class Embedder:
    """
    Asynchronous embedding generator for single texts.

    Documents and queries must go through the same model so that they share
    one embedding space.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Optional override for the API key. Defaults to settings.openai_api_key.

        model : Optional[str]
            Optional override for the embedding model. Defaults to settings.embedding_model.

        base_url : Optional[str]
            Embeddings endpoint. Defaults to settings.embedding_base_url.

        timeout : Optional[float]
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, used by tests to stub the provider.
        """
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.embedding_model
        self.base_url = base_url or settings.embedding_base_url
        self.timeout = timeout if timeout is not None else settings.embedding_timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> List[float]:
        """
        Generate the embedding of a single text.

        Returns
        -------
        List[float]
            The embedding vector.

        Raises
        ------
        EmbeddingError
            If the request fails or the response carries no usable vector.
        """
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {
            "model": self.model,
            "input": text,
            "encoding_format": "float",
        }

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    self.base_url,
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): input length=%d, error=%s",
                    type(exc).__name__,
                    len(text),
                    str(exc),
                )
                raise EmbeddingError(
                    f"Embedding generation failed: {type(exc).__name__}"
                ) from exc

            try:
                data = response.json()
            except ValueError as exc:
                raise EmbeddingError("Embedding response is not valid JSON.") from exc

        return self._extract_embedding(data)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_embedding(data: dict) -> List[float]:
        """
        Parse and validate the embedding output.

        OpenAI returns:
            { "data": [ {"embedding": [...]} ] }
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list) or not records:
            raise EmbeddingError("'data' field must be a non-empty list.")

        record = records[0]
        if not isinstance(record, dict) or "embedding" not in record:
            raise EmbeddingError(f"Malformed embedding record: {record!r}")

        emb = record["embedding"]
        if not isinstance(emb, list) or not emb:
            raise EmbeddingError("Embedding vector is absent or empty.")

        if not all(isinstance(x, (float, int)) and not isinstance(x, bool) for x in emb):
            raise EmbeddingError("Invalid embedding vector: must be float list.")

        return [float(x) for x in emb]
