from typing import Any, Dict, List

from pydantic import BaseModel, Field

from windsurf_chat.config import DEFAULT_TIMEOUT_SECONDS


class InferenceTask(BaseModel):
    """
    Standardized request object for one chat completion.

    Messages use the OpenAI shape ({"role": ..., "content": ...}) and are
    validated when the request is built, not here.
    """
    model_id: str
    messages: List[Dict[str, Any]]
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
