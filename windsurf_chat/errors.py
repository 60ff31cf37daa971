"""
Error taxonomy for windsurf-chat.

Every failure the client can report is a WindsurfError carrying a code,
a human-readable message and (optionally) the underlying cause. Pre-flight
errors (MissingCredential, ModelNotFound) are raised before any socket is
opened; ConnectionFailed and StreamError come from the transport.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Machine-readable error kinds."""
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    STREAM_ERROR = "STREAM_ERROR"


class WindsurfError(Exception):
    """Base error for all windsurf-chat failures."""

    code: ErrorCode = ErrorCode.STREAM_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class MissingCredential(WindsurfError):
    """Credential bundle is incomplete or has the wrong types."""
    code = ErrorCode.MISSING_CREDENTIAL

    def __init__(self, message: str, fields: Optional[list[str]] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.fields = list(fields or [])


class ModelNotFound(WindsurfError):
    """Model name has no entry in the model table."""
    code = ErrorCode.MODEL_NOT_FOUND

    def __init__(self, model: str):
        super().__init__(f"Unknown model: {model}")
        self.model = model


class ConnectionFailed(WindsurfError):
    """Could not reach the language server."""
    code = ErrorCode.CONNECTION_FAILED


class StreamError(WindsurfError):
    """The RPC failed mid-stream or finished with a non-zero grpc-status."""
    code = ErrorCode.STREAM_ERROR

    def __init__(self, message: str, status: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.status = status
