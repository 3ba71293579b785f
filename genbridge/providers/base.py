from abc import ABC, abstractmethod
from typing import List, Optional

from google.genai import types

from ..streaming import ResponseStream
from ..types import CountTokensRequest, EmbedContentRequest, GenerateContentRequest
from ..utils import to_contents


class BaseContentGenerator(ABC):
    """
    Abstract base class for content generators.

    Every backend implements the same four operations against the canonical
    (Gemini) schema. An instance owns one client handle and keeps no other
    state between calls.
    """

    provider_name: str = "base"

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    async def generate_content(self, request: GenerateContentRequest) -> types.GenerateContentResponse:
        """
        Generate a complete response.

        Args:
            request (GenerateContentRequest): model, contents and optional config.

        Returns:
            types.GenerateContentResponse: Canonical response.

        Raises:
            BackendError: If the underlying client call fails.
        """

    @abstractmethod
    async def generate_content_stream(self, request: GenerateContentRequest) -> ResponseStream:
        """
        Open a streaming generation call.

        Args:
            request (GenerateContentRequest): model, contents and optional config.

        Returns:
            ResponseStream: Partial responses in arrival order. Close it (or use
            ``async with``) when stopping early.

        Raises:
            BackendError: If the call cannot be opened or fails mid-stream.
        """

    @abstractmethod
    async def count_tokens(self, request: CountTokensRequest) -> types.CountTokensResponse:
        """
        Count the tokens of the request's contents.
        """

    @abstractmethod
    async def embed_content(self, request: EmbedContentRequest) -> types.EmbedContentResponse:
        """
        Embed each input item; vectors are returned in input order.
        """

    async def aclose(self) -> None:
        """
        Release the client handle. The default does nothing.
        """

    def _model_for(self, request: dict) -> str:
        return request.get("model") or self.model

    @staticmethod
    def _contents_for(request: dict) -> List[types.Content]:
        return to_contents(request.get("contents"))

    @staticmethod
    def _config_for(request: dict) -> Optional[types.GenerateContentConfig]:
        config = request.get("config")
        if isinstance(config, dict):
            return types.GenerateContentConfig.model_validate(config)
        return config
