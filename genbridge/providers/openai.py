import logging
import time
from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI
from google.genai import types

from .base import BaseContentGenerator
from ..config import DEFAULT_OPENAI_EMBEDDING_MODEL
from ..errors import BackendError
from ..mapping import build_response, from_openai_message, function_declarations, to_openai_messages, to_openai_tools
from ..streaming import ResponseStream, accumulate_openai_stream
from ..types import CountTokensRequest, EmbedContentRequest, GenerateContentRequest
from ..utils import content_text, extract_status_code, to_contents, to_embedding_inputs

logger = logging.getLogger(__name__)


class OpenAIContentGenerator(BaseContentGenerator):
    """
    Content generator backed by the OpenAI chat completions API.

    Requests are translated to OpenAI messages/tools and responses are
    translated back to the canonical schema.
    """

    provider_name = "openai"

    def __init__(
        self,
        model: str,
        api_key: Optional[str],
        *,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(model)
        self.client = AsyncOpenAI(api_key=api_key, default_headers=headers) if api_key else None
        logger.debug("Created openai generator for model %s", model)

    def _require_client(self) -> AsyncOpenAI:
        if not self.client:
            raise BackendError(
                "OpenAI client not configured",
                provider=self.provider_name,
                hint="Set OPENAI_API_KEY before resolving the configuration.",
            )
        return self.client

    def _backend_error(self, action: str, exc: BaseException) -> BackendError:
        return BackendError(
            f"{action} failed: {exc}",
            provider=self.provider_name,
            status_code=extract_status_code(exc),
        )

    def _chat_kwargs(self, request: GenerateContentRequest) -> Dict[str, Any]:
        """
        Build chat.completions.create arguments from a canonical request.
        """
        config = self._config_for(request)
        messages = to_openai_messages(self._contents_for(request))
        request_kwargs: Dict[str, Any] = {"model": self._model_for(request)}

        if config is None:
            request_kwargs["messages"] = messages
            return request_kwargs

        if config.system_instruction is not None:
            system_text = "".join(content_text(c) for c in to_contents(config.system_instruction))
            messages.insert(0, {"role": "system", "content": system_text})
        request_kwargs["messages"] = messages

        # Map options
        optional_params = {
            "temperature": config.temperature,
            "top_p": config.top_p,
            "max_tokens": config.max_output_tokens,
            "stop": config.stop_sequences,
            "seed": config.seed,
            "presence_penalty": config.presence_penalty,
            "frequency_penalty": config.frequency_penalty,
        }
        request_kwargs.update({k: v for k, v in optional_params.items() if v is not None})

        declarations = function_declarations(config)
        if declarations:
            request_kwargs["tools"] = to_openai_tools(declarations)
            request_kwargs["tool_choice"] = "auto"
        return request_kwargs

    async def generate_content(self, request: GenerateContentRequest) -> types.GenerateContentResponse:
        """
        Send one chat completion and map its first choice back.
        """
        client = self._require_client()
        start = time.perf_counter()
        try:
            resp = await client.chat.completions.create(**self._chat_kwargs(request))
        except openai.OpenAIError as exc:
            raise self._backend_error("generateContent", exc) from exc
        logger.debug("openai generateContent took %.1f ms", (time.perf_counter() - start) * 1000.0)

        if not resp.choices:
            return build_response([], usage=resp.usage, model_version=resp.model)
        choice = resp.choices[0]
        return from_openai_message(
            choice.message,
            finish_reason=choice.finish_reason,
            usage=resp.usage,
            model_version=resp.model,
        )

    async def generate_content_stream(self, request: GenerateContentRequest) -> ResponseStream:
        """
        Stream a chat completion as canonical partial responses.

        Each response carries the full text so far; tool calls appear once
        the model finishes them; usage arrives on the last response only.
        """
        client = self._require_client()
        try:
            stream = await client.chat.completions.create(
                **self._chat_kwargs(request),
                stream=True,
                stream_options={"include_usage": True},
            )
        except openai.OpenAIError as exc:
            raise self._backend_error("generateContentStream", exc) from exc

        return ResponseStream(
            accumulate_openai_stream(stream, on_close=stream.close),
            provider=self.provider_name,
            on_close=stream.close,
        )

    async def count_tokens(self, request: CountTokensRequest) -> types.CountTokensResponse:
        """
        Approximate the token count of the request.

        OpenAI has no counting endpoint, so this sends a real completion
        capped at one output token and reports its ``total_tokens``. The
        result includes that output token, and the call costs one request.
        """
        client = self._require_client()
        try:
            resp = await client.chat.completions.create(
                model=self._model_for(request),
                messages=to_openai_messages(self._contents_for(request)),
                max_tokens=1,
            )
        except openai.OpenAIError as exc:
            raise self._backend_error("countTokens", exc) from exc
        return types.CountTokensResponse(total_tokens=resp.usage.total_tokens if resp.usage else None)

    async def embed_content(self, request: EmbedContentRequest) -> types.EmbedContentResponse:
        """
        Embed each input item with the OpenAI embeddings API.
        """
        client = self._require_client()
        try:
            resp = await client.embeddings.create(
                model=request.get("model") or DEFAULT_OPENAI_EMBEDDING_MODEL,
                input=to_embedding_inputs(request.get("contents")),
            )
        except openai.OpenAIError as exc:
            raise self._backend_error("embedContent", exc) from exc

        data = sorted(resp.data, key=lambda item: item.index)
        return types.EmbedContentResponse(
            embeddings=[types.ContentEmbedding(values=item.embedding) for item in data]
        )

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()
