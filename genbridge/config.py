"""
Configuration resolution: turns caller hints plus environment credentials into
a `GeneratorConfig`.

This is the only module that reads the process environment.
"""
import logging
import os
from typing import Awaitable, Callable, Mapping, Optional, Union

import dotenv
import httpx

from .types import AuthKind, GeneratorConfig

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.5-pro"
DEFAULT_GEMINI_FLASH_MODEL = "gemini-2.5-flash"
DEFAULT_EMBEDDING_MODEL = "gemini-embedding-001"
DEFAULT_OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
# Budget for the quota probe; it must never hold up startup for long
PROBE_TIMEOUT_S = 2.0

ModelProbe = Callable[[str, str], Awaitable[str]]


def load_environment() -> Mapping[str, str]:
    """
    Load a `.env` file (if any) into the process environment and return it.

    Existing environment variables win over values from the file.
    """
    dotenv.load_dotenv()
    return os.environ


async def get_effective_model(
    api_key: str,
    current_model: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Check whether the default Pro model is usable for this key.

    Sends a one-token generateContent request; if the API answers HTTP 429
    the Flash model is returned instead. Any other outcome (success, other
    errors, timeouts) keeps the requested model. Models other than the
    default Pro model are never probed.

    Args:
        api_key (str): Gemini API key.
        current_model (str): The requested model.
        transport (httpx.AsyncBaseTransport, optional): Transport override.

    Returns:
        str: The model to use.
    """
    if current_model != DEFAULT_GEMINI_MODEL:
        return current_model

    body = {
        "contents": [{"role": "user", "parts": [{"text": "test"}]}],
        "generationConfig": {
            "maxOutputTokens": 1,
            "temperature": 0,
            "topK": 1,
            "thinkingConfig": {"thinkingBudget": 128, "includeThoughts": False},
        },
    }
    try:
        async with httpx.AsyncClient(timeout=PROBE_TIMEOUT_S, transport=transport) as http_client:
            response = await http_client.post(
                f"{GEMINI_API_BASE_URL}/models/{current_model}:generateContent",
                params={"key": api_key},
                json=body,
            )
    except httpx.HTTPError as exc:
        logger.debug("Model probe for %s failed, keeping it: %s", current_model, exc)
        return current_model

    if response.status_code == 429:
        logger.info(
            "%s is rate limited for this key, switching to %s",
            current_model,
            DEFAULT_GEMINI_FLASH_MODEL,
        )
        return DEFAULT_GEMINI_FLASH_MODEL
    return current_model


async def resolve_generator_config(
    model: Optional[str],
    auth_kind: Optional[Union[AuthKind, str]],
    *,
    get_model: Optional[Callable[[], Optional[str]]] = None,
    env: Optional[Mapping[str, str]] = None,
    probe: ModelProbe = get_effective_model,
) -> GeneratorConfig:
    """
    Resolve the configuration a content generator will be built from.

    Model precedence: the live session's model (`get_model`), then `model`,
    then `DEFAULT_GEMINI_MODEL`. Credentials are attached only when every
    variable the auth kind needs is present; otherwise the configuration is
    returned without one and later calls may fail.

    Args:
        model (str, optional): Model requested by the caller.
        auth_kind (AuthKind, optional): Backend flow to resolve for.
        get_model (callable, optional): Returns the session's current model.
        env (Mapping, optional): Environment to read. Defaults to `load_environment()`.
        probe (callable, optional): Effective-model check for Gemini/Vertex keys.

    Returns:
        GeneratorConfig: The resolved, immutable configuration.
    """
    if env is None:
        env = load_environment()

    session_model = get_model() if get_model is not None else None
    effective_model = session_model or model or DEFAULT_GEMINI_MODEL

    if auth_kind == AuthKind.LOGIN_WITH_GOOGLE:
        # Credentials are handled by the interactive login flow
        return GeneratorConfig(model=effective_model, auth_kind=auth_kind)

    gemini_api_key = env.get("GEMINI_API_KEY")
    google_api_key = env.get("GOOGLE_API_KEY")
    google_cloud_project = env.get("GOOGLE_CLOUD_PROJECT")
    google_cloud_location = env.get("GOOGLE_CLOUD_LOCATION")
    openai_api_key = env.get("OPENAI_API_KEY")

    if auth_kind == AuthKind.USE_GEMINI and gemini_api_key:
        return GeneratorConfig(
            model=await probe(gemini_api_key, effective_model),
            api_key=gemini_api_key,
            auth_kind=auth_kind,
        )

    if auth_kind == AuthKind.USE_VERTEX_AI and google_api_key and google_cloud_project and google_cloud_location:
        return GeneratorConfig(
            model=await probe(google_api_key, effective_model),
            api_key=google_api_key,
            vertexai=True,
            auth_kind=auth_kind,
            project=google_cloud_project,
            location=google_cloud_location,
        )

    if auth_kind == AuthKind.USE_OPENAI and openai_api_key:
        return GeneratorConfig(model=effective_model, api_key=openai_api_key, auth_kind=auth_kind)

    logger.debug("No credentials found for auth kind %s", auth_kind)
    return GeneratorConfig(model=effective_model, auth_kind=auth_kind)
