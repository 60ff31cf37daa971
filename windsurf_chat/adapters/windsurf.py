"""
WindsurfAdapter - local Windsurf language server implementation of HostAdapter.

One adapter per credential bundle. Each stream_completion() call opens its
own connection; nothing is pooled.
"""

import logging
from collections.abc import Mapping
from typing import Any, AsyncGenerator, Optional, Union

from windsurf_chat.adapters.schema import InferenceTask
from windsurf_chat.config import CredentialBundle, ensure_credentials
from windsurf_chat.decoder import ChunkDecoder
from windsurf_chat.messages import ChatEntryForm
from windsurf_chat.models import MODEL_CODES, available_models
from windsurf_chat.streaming import TransportFactory, stream_chat_iter

logger = logging.getLogger(__name__)


class WindsurfAdapter:
    """
    Windsurf implementation of HostAdapter.

    Models come from the fixed model table (optionally narrowed to a
    configured subset); there is no discovery endpoint.
    """

    def __init__(
        self,
        credentials: Union[CredentialBundle, Mapping[str, Any]],
        models: Optional[list[str]] = None,
        decoder: Optional[ChunkDecoder] = None,
        form: ChatEntryForm = ChatEntryForm.FORMATTED,
        transport_factory: Optional[TransportFactory] = None,
    ):
        self._credentials = ensure_credentials(credentials)
        self._models = list(models) if models is not None else available_models()
        self._decoder = decoder
        self._form = form
        self._transport_factory = transport_factory

    @property
    def server_name(self) -> str:
        return f"localhost:{self._credentials.port}"

    async def get_available_models(self) -> list[str]:
        """Return configured models (no discovery endpoint used)."""
        return list(self._models)

    def get_models_by_server(self) -> dict[str, list[str]]:
        """Return models grouped by 'server' (a single local endpoint)."""
        return {self.server_name: list(self._models)}

    def get_unreachable_servers(self) -> list[str]:
        """Reachability is only known per call; nothing is probed up front."""
        return []

    async def stream_completion(self, task: InferenceTask) -> AsyncGenerator[str, None]:
        """Stream completion from the local language server."""
        configured = {name.strip().lower() for name in self._models}
        table = {name: code for name, code in MODEL_CODES.items() if name.lower() in configured}
        logger.debug(f"Windsurf completion for {task.model_id} via {self.server_name}")
        chunks = stream_chat_iter(
            self._credentials,
            task.model_id,
            task.messages,
            timeout_seconds=task.timeout_seconds,
            decoder=self._decoder,
            transport_factory=self._transport_factory,
            form=self._form,
            model_table=table,
        )
        try:
            async for chunk in chunks:
                yield chunk
        finally:
            await chunks.aclose()
