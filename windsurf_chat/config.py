"""
Configuration constants and Pydantic models for windsurf-chat.
"""

import os
from collections.abc import Mapping
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from windsurf_chat.errors import MissingCredential, WindsurfError


# ─────────────────────────────────────────────────────────────────────
# DEFAULTS
# ─────────────────────────────────────────────────────────────────────

DEFAULT_TIMEOUT_SECONDS: float = 120.0  # 2 minutes, bounds the whole call
DEFAULT_HOST: str = "localhost"
DEFAULT_LOCALE: str = "en"
DEFAULT_IDE_NAME: str = "windsurf-next"
DEFAULT_EXTENSION_NAME: str = "windsurf"


# ─────────────────────────────────────────────────────────────────────
# PROTOCOL CONSTANTS - pinned to the language server's RPC surface
# ─────────────────────────────────────────────────────────────────────

RPC_METHOD_PATH: str = "/exa.language_server_pb.LanguageServerService/RawGetChatMessage"
GRPC_CONTENT_TYPE: str = "application/grpc"
CSRF_HEADER: str = "x-codeium-csrf-token"


# ─────────────────────────────────────────────────────────────────────
# ENVIRONMENT LOADING
# ─────────────────────────────────────────────────────────────────────

def get_timeout_seconds() -> float:
    """
    Get the global call timeout from environment or default.

    Set WINDSURF_TIMEOUT_SECONDS in .env (default: 120).
    """
    try:
        value = float(os.environ.get("WINDSURF_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def get_host() -> str:
    """Get the language server host from WINDSURF_HOST, or localhost."""
    return os.environ.get("WINDSURF_HOST", "").strip() or DEFAULT_HOST


def load_credentials_from_env() -> "CredentialBundle":
    """
    Build a credential bundle from environment variables.

    Reads WINDSURF_CSRF_TOKEN, WINDSURF_PORT, WINDSURF_API_KEY and
    WINDSURF_VERSION. Discovering these values from a running IDE is
    left to whoever sets the environment.

    Raises:
        MissingCredential: if any variable is unset or invalid
    """
    raw = {
        "csrf_token": os.environ.get("WINDSURF_CSRF_TOKEN"),
        "port": os.environ.get("WINDSURF_PORT"),
        "api_key": os.environ.get("WINDSURF_API_KEY"),
        "version": os.environ.get("WINDSURF_VERSION"),
    }
    return ensure_credentials({k: v for k, v in raw.items() if v is not None})


# ─────────────────────────────────────────────────────────────────────
# DATA MODELS
# ─────────────────────────────────────────────────────────────────────

class CredentialBundle(BaseModel):
    """Everything needed to talk to one running language server.

    Produced by an external discovery step and treated as opaque here.
    """
    model_config = ConfigDict(frozen=True)

    csrf_token: str = Field(min_length=1)
    port: int = Field(gt=0, lt=65536)
    api_key: str = Field(min_length=1)
    version: str


# camelCase keys as emitted by JavaScript-side discovery tools
_CREDENTIAL_KEY_ALIASES = {"csrfToken": "csrf_token", "apiKey": "api_key"}


def ensure_credentials(source: Union[CredentialBundle, Mapping[str, Any]]) -> CredentialBundle:
    """
    Validate a credential bundle for presence and type.

    Accepts an existing CredentialBundle (returned as-is) or a mapping using
    either snake_case or camelCase keys.

    Raises:
        MissingCredential: naming every missing or invalid field
    """
    if isinstance(source, CredentialBundle):
        return source
    if not isinstance(source, Mapping):
        raise MissingCredential(
            f"Credentials must be a mapping or CredentialBundle, got {type(source).__name__}"
        )
    data = {_CREDENTIAL_KEY_ALIASES.get(key, key): value for key, value in source.items()}
    try:
        return CredentialBundle.model_validate(data)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise MissingCredential(
            f"Missing or invalid credentials: {', '.join(fields)}",
            fields=fields,
            cause=e,
        ) from e


Role = Literal["user", "assistant", "system", "tool"]


class ChatMessage(BaseModel):
    """A single message in a conversation."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


def normalize_messages(messages: list[Union[ChatMessage, Mapping[str, Any]]]) -> list[ChatMessage]:
    """Coerce OpenAI-format dicts into ChatMessage instances, keeping order."""
    return [
        m if isinstance(m, ChatMessage) else ChatMessage.model_validate(dict(m))
        for m in messages
    ]


class StreamResult(BaseModel):
    """Final outcome of one chat call. Built once, never revised."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    text: str
    status: Literal["success", "failure"]
    error: Optional[WindsurfError] = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.status == "success"
