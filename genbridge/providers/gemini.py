import logging
from typing import Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .base import BaseContentGenerator
from ..config import DEFAULT_EMBEDDING_MODEL
from ..errors import BackendError
from ..streaming import ResponseStream
from ..types import CountTokensRequest, EmbedContentRequest, GenerateContentRequest
from ..utils import extract_status_code, to_embedding_inputs

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (genai_errors.APIError, httpx.HTTPError)


class GeminiContentGenerator(BaseContentGenerator):
    """
    Content generator for the Gemini API (using google-genai SDK).

    The SDK already speaks the canonical schema, so requests and responses
    pass through untouched; only failures are translated.
    """

    provider_name = "gemini"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        vertexai: bool = False,
        project: Optional[str] = None,
        location: Optional[str] = None,
    ):
        super().__init__(model)
        client_kwargs = {
            # An empty key means "let the SDK decide"
            "api_key": api_key or None,
            "vertexai": vertexai,
            "http_options": types.HttpOptions(headers=headers or {}),
        }
        # The SDK rejects project/location together with an API key
        if vertexai and not api_key:
            client_kwargs.update(project=project, location=location)
        self.client = genai.Client(**client_kwargs)
        logger.debug("Created %s generator for model %s", self.provider_name, model)

    def _backend_error(self, action: str, exc: BaseException) -> BackendError:
        return BackendError(
            f"{action} failed: {exc}",
            provider=self.provider_name,
            status_code=extract_status_code(exc),
        )

    async def generate_content(self, request: GenerateContentRequest) -> types.GenerateContentResponse:
        try:
            return await self.client.aio.models.generate_content(
                model=self._model_for(request),
                contents=self._contents_for(request),
                config=self._config_for(request),
            )
        except _CLIENT_ERRORS as exc:
            raise self._backend_error("generateContent", exc) from exc

    async def generate_content_stream(self, request: GenerateContentRequest) -> ResponseStream:
        try:
            responses = await self.client.aio.models.generate_content_stream(
                model=self._model_for(request),
                contents=self._contents_for(request),
                config=self._config_for(request),
            )
        except _CLIENT_ERRORS as exc:
            raise self._backend_error("generateContentStream", exc) from exc
        return ResponseStream(responses, provider=self.provider_name)

    async def count_tokens(self, request: CountTokensRequest) -> types.CountTokensResponse:
        try:
            return await self.client.aio.models.count_tokens(
                model=self._model_for(request),
                contents=self._contents_for(request),
            )
        except _CLIENT_ERRORS as exc:
            raise self._backend_error("countTokens", exc) from exc

    async def embed_content(self, request: EmbedContentRequest) -> types.EmbedContentResponse:
        try:
            return await self.client.aio.models.embed_content(
                model=request.get("model") or DEFAULT_EMBEDDING_MODEL,
                contents=to_embedding_inputs(request.get("contents")),
            )
        except _CLIENT_ERRORS as exc:
            raise self._backend_error("embedContent", exc) from exc

    async def aclose(self) -> None:
        await self.client.aio.aclose()


class VertexContentGenerator(GeminiContentGenerator):
    """
    Content generator for the Gemini API hosted on Vertex AI.
    """

    provider_name = "vertex-ai"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        project: Optional[str] = None,
        location: Optional[str] = None,
    ):
        super().__init__(
            model,
            api_key,
            headers=headers,
            vertexai=True,
            project=project,
            location=location,
        )
