"""
Model name -> chat_model enum code.

The codes are the language server's Model enum values, observed on the wire.
Names are matched case-insensitively after trimming whitespace.
"""

from collections.abc import Mapping
from typing import Optional

from windsurf_chat.errors import ModelNotFound


MODEL_CODES: dict[str, int] = {
    "gpt-4o": 109,
    "gpt-4o-2024-08-06": 109,
    "claude-3.5-sonnet": 166,
    "claude-3-5-sonnet-20241022": 166,
    "gpt-4.1": 259,
    "gpt-4.1-2025-04-14": 259,
}


def resolve_model(name: str, table: Optional[Mapping[str, int]] = None) -> int:
    """
    Look up the integer code for a model name.

    Args:
        name: Model name as supplied by the caller
        table: Optional replacement for MODEL_CODES

    Raises:
        ModelNotFound: if the name is not in the table
    """
    codes = MODEL_CODES if table is None else table
    key = name.strip().lower()
    for candidate, code in codes.items():
        if candidate.lower() == key:
            return code
    raise ModelNotFound(str(name))


def available_models(table: Optional[Mapping[str, int]] = None) -> list[str]:
    """Return model names in table order."""
    return list(MODEL_CODES if table is None else table)
