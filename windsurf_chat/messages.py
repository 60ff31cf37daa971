"""
Request builder for RawGetChatMessage.

Field layouts were recovered by observing the language server, not from a
published .proto. Every number below is load-bearing: the server decodes by
field number, so renumbering silently changes meaning.

RawGetChatMessageRequest:
    1  metadata                 Metadata
    2  chat_messages            repeated chat entry (see ChatEntryForm)
    3  system_prompt_override   string
    4  chat_model               varint (see models.py)
    5  chat_model_name          string
"""

import logging
import time
import uuid
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, Field

from windsurf_chat.config import (
    DEFAULT_EXTENSION_NAME,
    DEFAULT_IDE_NAME,
    DEFAULT_LOCALE,
    ChatMessage,
    CredentialBundle,
)
from windsurf_chat.wire import (
    encode_message,
    encode_string,
    encode_varint_field,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# FIELD NUMBERS
# ─────────────────────────────────────────────────────────────────────

class RequestField(IntEnum):
    METADATA = 1
    CHAT_MESSAGES = 2
    SYSTEM_PROMPT_OVERRIDE = 3
    CHAT_MODEL = 4
    CHAT_MODEL_NAME = 5


class MetadataField(IntEnum):
    IDE_NAME = 1
    IDE_VERSION = 2
    API_KEY = 3
    LOCALE = 4
    EXTENSION_VERSION = 7
    REQUEST_ID = 9
    SESSION_ID = 10
    EXTENSION_NAME = 12


class FormattedChatField(IntEnum):
    SOURCE = 1
    HEADER = 2
    CONTENT = 3
    FOOTER = 4


class StructuredChatField(IntEnum):
    MESSAGE_ID = 1
    SOURCE = 2
    TIMESTAMP = 3
    CONVERSATION_ID = 4
    INTENT = 5


class TimestampField(IntEnum):
    SECONDS = 1
    NANOS = 2


class IntentField(IntEnum):
    GENERIC = 1  # oneof member; the only one we send


class IntentGenericField(IntEnum):
    TEXT = 1


class ChatMessageSource(IntEnum):
    USER = 1
    SYSTEM = 2
    ASSISTANT = 3
    TOOL = 4


ROLE_TO_SOURCE: dict[str, ChatMessageSource] = {
    "user": ChatMessageSource.USER,
    "assistant": ChatMessageSource.ASSISTANT,
    "system": ChatMessageSource.SYSTEM,
    "tool": ChatMessageSource.TOOL,
}


class ChatEntryForm(str, Enum):
    """Which chat-entry shape a request uses. One per call."""
    FORMATTED = "formatted"
    STRUCTURED = "structured"


# ─────────────────────────────────────────────────────────────────────
# METADATA
# ─────────────────────────────────────────────────────────────────────

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class RequestMetadata(BaseModel):
    """Values for the Metadata sub-message.

    request_id is wall-clock milliseconds, so two calls started in the same
    millisecond share one.
    """
    api_key: str
    ide_version: str
    extension_version: str
    ide_name: str = DEFAULT_IDE_NAME
    extension_name: str = DEFAULT_EXTENSION_NAME
    locale: str = DEFAULT_LOCALE
    request_id: int = Field(default_factory=_now_ms, ge=0)
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_credentials(cls, credentials: CredentialBundle, **overrides) -> "RequestMetadata":
        values = {
            "api_key": credentials.api_key,
            "ide_version": credentials.version,
            "extension_version": credentials.version,
        }
        values.update(overrides)
        return cls(**values)


def encode_metadata(metadata: RequestMetadata) -> bytes:
    return b"".join([
        encode_string(MetadataField.IDE_NAME, metadata.ide_name),
        encode_string(MetadataField.IDE_VERSION, metadata.ide_version),
        encode_string(MetadataField.API_KEY, metadata.api_key),
        encode_string(MetadataField.LOCALE, metadata.locale),
        encode_string(MetadataField.EXTENSION_VERSION, metadata.extension_version),
        encode_varint_field(MetadataField.REQUEST_ID, metadata.request_id),
        encode_string(MetadataField.SESSION_ID, metadata.session_id),
        encode_string(MetadataField.EXTENSION_NAME, metadata.extension_name),
    ])


# ─────────────────────────────────────────────────────────────────────
# CHAT ENTRIES
# ─────────────────────────────────────────────────────────────────────

def encode_formatted_entry(
    source: ChatMessageSource,
    content: str,
    header: str = "",
    footer: str = "",
) -> bytes:
    """FormattedChatMessage: source, optional header, content, optional footer."""
    parts = [encode_varint_field(FormattedChatField.SOURCE, source)]
    if header:
        parts.append(encode_string(FormattedChatField.HEADER, header))
    parts.append(encode_string(FormattedChatField.CONTENT, content))
    if footer:
        parts.append(encode_string(FormattedChatField.FOOTER, footer))
    return b"".join(parts)


def encode_timestamp(epoch_ms: int) -> bytes:
    """google.protobuf.Timestamp from epoch milliseconds. Zero nanos are omitted."""
    seconds, millis = divmod(epoch_ms, 1000)
    out = encode_varint_field(TimestampField.SECONDS, seconds)
    if millis:
        out += encode_varint_field(TimestampField.NANOS, millis * 1_000_000)
    return out


def encode_structured_entry(
    source: ChatMessageSource,
    content: str,
    message_id: str,
    conversation_id: str,
    epoch_ms: int,
) -> bytes:
    """ChatMessage with id, timestamp, conversation and a generic intent."""
    intent = encode_message(
        IntentField.GENERIC,
        encode_string(IntentGenericField.TEXT, content),
    )
    return b"".join([
        encode_string(StructuredChatField.MESSAGE_ID, message_id),
        encode_varint_field(StructuredChatField.SOURCE, source),
        encode_message(StructuredChatField.TIMESTAMP, encode_timestamp(epoch_ms)),
        encode_string(StructuredChatField.CONVERSATION_ID, conversation_id),
        encode_message(StructuredChatField.INTENT, intent),
    ])


# ─────────────────────────────────────────────────────────────────────
# REQUEST
# ─────────────────────────────────────────────────────────────────────

def split_system_prompt(messages: list[ChatMessage]) -> tuple[Optional[str], list[ChatMessage]]:
    """
    Separate system messages from the conversation.

    The last system message wins; earlier ones are dropped. The remaining
    messages keep their input order.
    """
    system_prompt: Optional[str] = None
    conversation: list[ChatMessage] = []
    dropped = 0
    for msg in messages:
        if msg.role == "system":
            if system_prompt is not None:
                dropped += 1
            system_prompt = msg.content
        else:
            conversation.append(msg)
    if dropped:
        logger.debug(f"Ignoring {dropped} earlier system message(s); last one wins")
    return system_prompt, conversation


def build_chat_request(
    metadata: RequestMetadata,
    messages: list[ChatMessage],
    model_code: int,
    form: ChatEntryForm = ChatEntryForm.FORMATTED,
    model_name: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> bytes:
    """
    Serialize a RawGetChatMessageRequest.

    Args:
        metadata: Metadata sub-message values
        messages: Conversation in order; system messages become the override
        model_code: Resolved chat_model enum value
        form: Chat entry shape, applied to every entry
        model_name: Optional chat_model_name string
        now_ms: Clock for STRUCTURED timestamps (defaults to wall clock)

    Returns:
        Unframed request payload
    """
    system_prompt, conversation = split_system_prompt(messages)

    parts = [encode_message(RequestField.METADATA, encode_metadata(metadata))]

    if form == ChatEntryForm.STRUCTURED:
        conversation_id = str(uuid.uuid4())
        epoch_ms = _now_ms() if now_ms is None else now_ms
        for msg in conversation:
            entry = encode_structured_entry(
                ROLE_TO_SOURCE[msg.role], msg.content,
                message_id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                epoch_ms=epoch_ms,
            )
            parts.append(encode_message(RequestField.CHAT_MESSAGES, entry))
    else:
        for msg in conversation:
            entry = encode_formatted_entry(ROLE_TO_SOURCE[msg.role], msg.content)
            parts.append(encode_message(RequestField.CHAT_MESSAGES, entry))

    if system_prompt:
        parts.append(encode_string(RequestField.SYSTEM_PROMPT_OVERRIDE, system_prompt))

    parts.append(encode_varint_field(RequestField.CHAT_MODEL, model_code))
    if model_name:
        parts.append(encode_string(RequestField.CHAT_MODEL_NAME, model_name))

    payload = b"".join(parts)
    logger.debug(
        f"Built chat request: {len(conversation)} entries, form={form.value}, "
        f"model={model_code}, {len(payload)} bytes"
    )
    return payload
