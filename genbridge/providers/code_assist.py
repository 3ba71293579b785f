"""
Content generator for "Login with Google" accounts, served by the Code Assist API.

The OAuth flow itself is out of scope: callers hand in an async
``token_provider`` that returns a current access token.
"""
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import httpx
from google.genai import types

from .base import BaseContentGenerator
from ..errors import BackendError
from ..streaming import ResponseStream
from ..types import CountTokensRequest, EmbedContentRequest, GenerateContentRequest
from ..utils import to_contents

logger = logging.getLogger(__name__)

CODE_ASSIST_ENDPOINT = "https://cloudcode-pa.googleapis.com"
CODE_ASSIST_API_VERSION = "v1internal"

TokenProvider = Callable[[], Awaitable[str]]

# GenerateContentConfig fields that sit beside generationConfig in the request
_TOP_LEVEL_FIELDS = ("tools", "toolConfig", "safetySettings", "cachedContent", "labels")
# SDK-only fields with no wire representation
_CLIENT_ONLY_FIELDS = ("httpOptions", "automaticFunctionCalling", "systemInstruction")


def _dump(model: Any) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_code_assist_request(
    model: str,
    contents: List[types.Content],
    config: Optional[types.GenerateContentConfig],
    project: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a Code Assist generateContent body from a canonical request.

    Sampling options go to ``generationConfig``; system instruction, tools,
    tool config and safety settings are lifted to the inner request.
    """
    request: Dict[str, Any] = {"contents": [_dump(c) for c in contents]}
    if config is not None:
        generation_config = _dump(config)
        for key in _TOP_LEVEL_FIELDS:
            if key in generation_config:
                request[key] = generation_config.pop(key)
        for key in _CLIENT_ONLY_FIELDS:
            generation_config.pop(key, None)
        if config.system_instruction is not None:
            system_parts = []
            for content in to_contents(config.system_instruction):
                system_parts.extend(_dump(part) for part in content.parts or [])
            request["systemInstruction"] = {"role": "user", "parts": system_parts}
        if generation_config:
            request["generationConfig"] = generation_config

    body: Dict[str, Any] = {"model": model, "request": request}
    if project:
        body["project"] = project
    return body


def from_code_assist_response(payload: Dict[str, Any]) -> types.GenerateContentResponse:
    return types.GenerateContentResponse.model_validate(payload.get("response") or {})


async def iter_sse_payloads(lines: AsyncIterator[str]) -> AsyncIterator[Dict[str, Any]]:
    """
    Parse server-sent events into JSON payloads.

    ``data:`` lines are buffered until a blank line closes the event.
    """
    buffered: List[str] = []
    async for line in lines:
        if line.startswith("data:"):
            buffered.append(line[5:].strip())
        elif not line.strip() and buffered:
            yield json.loads("\n".join(buffered))
            buffered = []
    if buffered:
        yield json.loads("\n".join(buffered))


class CodeAssistContentGenerator(BaseContentGenerator):
    """
    Content generator for the Code Assist (Login with Google) backend.
    """

    provider_name = "code-assist"

    def __init__(
        self,
        model: str,
        token_provider: Optional[TokenProvider] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        project: Optional[str] = None,
        endpoint: str = CODE_ASSIST_ENDPOINT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(model)
        self.token_provider = token_provider
        self.project = project
        # Timeouts are left to the caller's transport
        self.http = httpx.AsyncClient(
            base_url=endpoint,
            headers=headers or {},
            timeout=None,
            transport=transport,
        )
        logger.debug("Created code-assist generator for model %s", model)

    def _backend_error(self, action: str, exc: BaseException) -> BackendError:
        status_code = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
        return BackendError(f"{action} failed: {exc}", provider=self.provider_name, status_code=status_code)

    async def _auth_headers(self) -> Dict[str, str]:
        if self.token_provider is None:
            raise BackendError(
                "No access token available",
                provider=self.provider_name,
                hint="Complete the Login with Google flow and pass its token_provider.",
            )
        try:
            token = await self.token_provider()
        except Exception as exc:
            raise BackendError(
                f"Access token lookup failed: {exc}",
                provider=self.provider_name,
                hint="Repeat the Login with Google flow.",
            ) from exc
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _url(method: str) -> str:
        return f"/{CODE_ASSIST_API_VERSION}:{method}"

    async def _post(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = await self._auth_headers()
        try:
            response = await self.http.post(self._url(method), json=body, headers=headers)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise self._backend_error(method, exc) from exc

    def _body(self, request: GenerateContentRequest) -> Dict[str, Any]:
        return to_code_assist_request(
            self._model_for(request),
            self._contents_for(request),
            self._config_for(request),
            self.project,
        )

    async def generate_content(self, request: GenerateContentRequest) -> types.GenerateContentResponse:
        payload = await self._post("generateContent", self._body(request))
        return from_code_assist_response(payload)

    async def generate_content_stream(self, request: GenerateContentRequest) -> ResponseStream:
        http_request = self.http.build_request(
            "POST",
            self._url("streamGenerateContent"),
            params={"alt": "sse"},
            json=self._body(request),
            headers=await self._auth_headers(),
        )
        try:
            response = await self.http.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            raise self._backend_error("streamGenerateContent", exc) from exc
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            await response.aclose()
            raise self._backend_error("streamGenerateContent", exc) from exc

        async def responses() -> AsyncIterator[types.GenerateContentResponse]:
            try:
                async for payload in iter_sse_payloads(response.aiter_lines()):
                    yield from_code_assist_response(payload)
            finally:
                await response.aclose()

        return ResponseStream(
            responses(),
            provider=self.provider_name,
            on_close=response.aclose,
        )

    async def count_tokens(self, request: CountTokensRequest) -> types.CountTokensResponse:
        body = {
            "request": {
                "model": f"models/{self._model_for(request)}",
                "contents": [_dump(c) for c in self._contents_for(request)],
            }
        }
        payload = await self._post("countTokens", body)
        return types.CountTokensResponse(total_tokens=payload.get("totalTokens"))

    async def embed_content(self, request: EmbedContentRequest) -> types.EmbedContentResponse:
        raise BackendError(
            "embedContent is not supported for Login with Google accounts",
            provider=self.provider_name,
            hint="Use a Gemini API key or Vertex AI for embeddings.",
        )

    async def aclose(self) -> None:
        await self.http.aclose()
