"""
windsurf-chat: streaming chat client for the local Windsurf language server.

Public API:
- stream_chat: push mode (callbacks), returns the full text
- stream_chat_iter: pull mode, async iterator of text fragments
- prepare_call / ChatCall: the shared event sequence behind both
- CredentialBundle, ChatMessage, StreamResult: data models
- WindsurfError and subclasses: error taxonomy
"""

from .config import ChatMessage, CredentialBundle, StreamResult, load_credentials_from_env
from .decoder import ChunkDecoder, HeuristicChunkDecoder, Utf8ChunkDecoder
from .errors import (
    ConnectionFailed,
    ErrorCode,
    MissingCredential,
    ModelNotFound,
    StreamError,
    WindsurfError,
)
from .messages import ChatEntryForm
from .models import MODEL_CODES, resolve_model
from .streaming import (
    ChatCall,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    prepare_call,
    stream_chat,
    stream_chat_iter,
)

__all__ = [
    "stream_chat",
    "stream_chat_iter",
    "prepare_call",
    "ChatCall",
    "ChunkEvent",
    "DoneEvent",
    "ErrorEvent",
    "ChatMessage",
    "CredentialBundle",
    "StreamResult",
    "load_credentials_from_env",
    "ChatEntryForm",
    "ChunkDecoder",
    "HeuristicChunkDecoder",
    "Utf8ChunkDecoder",
    "MODEL_CODES",
    "resolve_model",
    "WindsurfError",
    "ErrorCode",
    "MissingCredential",
    "ModelNotFound",
    "ConnectionFailed",
    "StreamError",
]

__version__ = "0.1.0"
