"""Exception hierarchy for genbridge."""

from typing import Any, Optional


class GenBridgeError(Exception):
    """Base exception for all genbridge errors."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class UnsupportedAuthKindError(GenBridgeError):
    """No content generator exists for the configured auth kind."""

    def __init__(self, auth_kind: Any) -> None:
        super().__init__(
            f"Error creating content generator: Unsupported auth kind: {auth_kind}",
            hint="Use one of: oauth-personal, gemini-api-key, vertex-ai, openai-api-key.",
        )
        self.auth_kind = auth_kind


class BackendError(GenBridgeError):
    """A call to an underlying provider client failed.

    The original exception is chained as ``__cause__``; nothing is retried.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(f"[{provider}] {message}", hint=hint)
        self.provider = provider
        self.status_code = status_code


class MalformedToolCallError(GenBridgeError):
    """A tool call's arguments string is not valid JSON."""

    def __init__(self, call_id: Optional[str], name: Optional[str], raw_arguments: str) -> None:
        super().__init__(f"Tool call {name!r} ({call_id}) has malformed arguments: {raw_arguments!r}")
        self.call_id = call_id
        self.name = name
        self.raw_arguments = raw_arguments
