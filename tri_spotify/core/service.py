"""
Wires the service components together from a ServiceConfig and owns the
resources they share: the worker pool, the search session and the backend.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from tri_spotify.api.backend import (
    VariantFetcher,
    VariantSource,
    close_backend,
    load_backend,
)
from tri_spotify.api.search import SpotifySearchClient
from tri_spotify.media.writer import ArtifactWriter
from tri_spotify.models.config import ServiceConfig
from tri_spotify.models.stats import ServiceStats
from tri_spotify.storage.artifacts import ArtifactStore
from tri_spotify.utils.structured_logger import create_event_logger

from .orchestrator import RequestOrchestrator
from .resolver import IdentifierResolver

log = logging.getLogger(__name__)


class ServiceRuntime:
    """Everything one running service instance needs, built once at startup."""

    def __init__(self, config: ServiceConfig, backend: Optional[VariantSource] = None):
        """
        Args:
            config: The validated service configuration.
            backend: A ready streaming backend; loaded from config.backend when
            omitted.
        """
        self.config = config
        self.backend = backend or load_backend(config.backend, config)
        self.executor = ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="tri-persist"
        )
        self.store = ArtifactStore(config.cache_dir)
        self.stats = ServiceStats()
        self.search_client = SpotifySearchClient(
            config.api_base_url, config.max_workers
        )
        self._event_base, events = create_event_logger(config.log_dir)
        self.orchestrator = RequestOrchestrator(
            resolver=IdentifierResolver(self.search_client),
            fetcher=VariantFetcher(self.backend),
            writer=ArtifactWriter(self.store, self.executor),
            stats=self.stats,
            events=events,
            timeout=config.request_timeout,
        )

    async def close(self) -> None:
        """Releases sessions and the worker pool."""
        await self.search_client.close()
        await close_backend(self.backend)
        # Abandoned writes from timed-out requests must not block shutdown
        self.executor.shutdown(wait=False, cancel_futures=True)
        self._event_base.close()
        log.debug("Service runtime closed.")
