import logging
from typing import Callable, Mapping, Optional, Union

from google.genai import types

from .config import resolve_generator_config
from .errors import UnsupportedAuthKindError
from .providers.base import BaseContentGenerator
from .providers.code_assist import CodeAssistContentGenerator, TokenProvider
from .providers.gemini import GeminiContentGenerator, VertexContentGenerator
from .providers.openai import OpenAIContentGenerator
from .streaming import ResponseStream
from .types import (
    AuthKind,
    CountTokensRequest,
    EmbedContentRequest,
    GenerateContentRequest,
    GeneratorConfig,
)
from .utils import build_http_headers

logger = logging.getLogger(__name__)


def create_content_generator(
    config: GeneratorConfig,
    *,
    token_provider: Optional[TokenProvider] = None,
    version: Optional[str] = None,
) -> BaseContentGenerator:
    """
    Build the content generator for a resolved configuration.

    Dispatches once on ``config.auth_kind``; the returned generator is used
    for every later call.

    Args:
        config (GeneratorConfig): Output of `resolve_generator_config`.
        token_provider (callable, optional): Access-token source for the
            Login with Google backend.
        version (str, optional): Version token for the User-Agent header.

    Returns:
        BaseContentGenerator: The generator for the configured backend.

    Raises:
        UnsupportedAuthKindError: If the auth kind is unset or unknown.
    """
    try:
        auth_kind = AuthKind(config.auth_kind)
    except ValueError:
        raise UnsupportedAuthKindError(config.auth_kind) from None

    headers = build_http_headers(version)
    logger.debug("Creating content generator for %s", auth_kind.value)

    if auth_kind is AuthKind.LOGIN_WITH_GOOGLE:
        return CodeAssistContentGenerator(
            config.model,
            token_provider,
            headers=headers,
            project=config.project,
        )

    if auth_kind is AuthKind.USE_GEMINI:
        return GeminiContentGenerator(config.model, config.api_key, headers=headers)

    if auth_kind is AuthKind.USE_VERTEX_AI:
        return VertexContentGenerator(
            config.model,
            config.api_key,
            headers=headers,
            project=config.project,
            location=config.location,
        )

    return OpenAIContentGenerator(config.model, config.api_key, headers=headers)


class ContentGenerationClient:
    """
    Unified client for generating content through any supported backend.

    Resolves configuration, builds the matching generator once, and exposes
    the four canonical operations.

    Example:
        >>> client = await ContentGenerationClient.create(AuthKind.USE_OPENAI, model="gpt-4o")
        >>> response = await client.generate_content({"contents": "Hello"})
        >>> print(response.text)
    """

    def __init__(self, config: GeneratorConfig, generator: BaseContentGenerator):
        self.config = config
        self.generator = generator

    @classmethod
    async def create(
        cls,
        auth_kind: Union[AuthKind, str],
        *,
        model: Optional[str] = None,
        get_model: Optional[Callable[[], Optional[str]]] = None,
        env: Optional[Mapping[str, str]] = None,
        token_provider: Optional[TokenProvider] = None,
    ) -> "ContentGenerationClient":
        """
        Resolve a configuration and build its generator.

        Args:
            auth_kind: Backend flow to use.
            model (str, optional): Requested model.
            get_model (callable, optional): Returns the session's current model.
            env (Mapping, optional): Environment to read credentials from.
            token_provider (callable, optional): Access tokens for Login with Google.

        Raises:
            UnsupportedAuthKindError: If `auth_kind` is unknown.
        """
        config = await resolve_generator_config(model, auth_kind, get_model=get_model, env=env)
        return cls(config, create_content_generator(config, token_provider=token_provider))

    @property
    def provider(self) -> str:
        return self.generator.provider_name

    async def generate_content(self, request: GenerateContentRequest) -> types.GenerateContentResponse:
        return await self.generator.generate_content(request)

    async def generate_content_stream(self, request: GenerateContentRequest) -> ResponseStream:
        return await self.generator.generate_content_stream(request)

    async def count_tokens(self, request: CountTokensRequest) -> types.CountTokensResponse:
        return await self.generator.count_tokens(request)

    async def embed_content(self, request: EmbedContentRequest) -> types.EmbedContentResponse:
        return await self.generator.embed_content(request)

    async def aclose(self) -> None:
        await self.generator.aclose()

    async def __aenter__(self) -> "ContentGenerationClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
