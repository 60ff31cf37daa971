"""
HostAdapter Protocol - defines the contract for chat inference backends.

This is the WHAT (interface), not the HOW (implementation).
See windsurf.py for the concrete implementation.
"""

from typing import AsyncGenerator, Protocol

from windsurf_chat.adapters.schema import InferenceTask


class HostAdapter(Protocol):
    """
    Contract for chat inference backends.

    Implementations must provide:
    - Model discovery (get_available_models)
    - Streaming completion (stream_completion)
    """

    async def get_available_models(self) -> list[str]:
        """
        Return list of model names this host can serve.

        Returns:
            List of model names (e.g., ["gpt-4o", "claude-3.5-sonnet"])
        """
        ...

    def stream_completion(self, task: InferenceTask) -> AsyncGenerator[str, None]:
        """
        Stream completion chunks from the model.

        Args:
            task: Model, messages and timeout for one request

        Yields:
            Text chunks as they arrive from the model

        Raises:
            WindsurfError on failure (fail loudly)
        """
        ...
