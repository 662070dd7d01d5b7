"""
Config aggregator entry point.

Resolution order:
    1. deep copy of the caller's base config
    2. allow-listed environment categories (never overwrite base values)
    3. JSON documents of ``<descriptor_key>.bucket_name``, when set
    4. data-URI decoding of every string leaf

The compiled tree is computed at most once per aggregator. Concurrent first
callers share one in-flight resolution; every later call returns the same
object and ignores its arguments.
"""

import asyncio
from copy import deepcopy
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import aiohttp
from google.auth.exceptions import GoogleAuthError
from loguru import logger

from aggregator.encoding import decode_tree
from aggregator.environment import extract_environment
from aggregator.errors import BucketListingError
from aggregator.fetcher import DocumentFetcher
from aggregator.merge import MergeCoordinator
from aggregator.object_store import ObjectStore, get_object_store
from aggregator.scanner import BucketScanner
from aggregator.settings import AggregatorSettings

StoreFactory = Callable[[Mapping[str, Any]], ObjectStore]
SessionFactory = Callable[[AggregatorSettings], aiohttp.ClientSession]


def default_session_factory(settings: AggregatorSettings) -> aiohttp.ClientSession:
    # bounded only by the signed URL lifetime
    timeout = aiohttp.ClientTimeout(total=settings.signed_url_expiry_seconds)
    return aiohttp.ClientSession(timeout=timeout)


class ConfigAggregator:
    """Caller-owned handle holding one compiled config."""

    def __init__(
        self,
        settings: Optional[AggregatorSettings] = None,
        store_factory: Optional[StoreFactory] = None,
        session_factory: Optional[SessionFactory] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.settings = settings or AggregatorSettings()
        self.store_factory = store_factory or get_object_store
        self.session_factory = session_factory or default_session_factory
        self.environ = environ
        self._compiled: Optional[Dict[str, Any]] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def compiled(self) -> Optional[Dict[str, Any]]:
        return self._compiled

    def reset(self) -> None:
        """Forget the compiled config so the next call resolves again."""
        self._compiled = None
        self._inflight = None

    async def resolve(
        self,
        categories: Optional[Sequence[str]] = None,
        base_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Return the compiled config, resolving it on first use.

        Args:
            categories: Allow-listed environment categories
            base_config: Seed config tree (not mutated)

        Returns:
            The compiled config tree

        Raises:
            ConfigAggregationError: If listing, signing or any document fetch fails
        """
        if self._compiled is not None:
            logger.debug("Returning cached config")
            return self._compiled

        if self._inflight is not None and self._inflight.get_loop() is not asyncio.get_running_loop():
            # left over from a loop that has since closed
            self._inflight = None
        if self._inflight is None:
            self._inflight = asyncio.create_task(self._compile(list(categories or []), base_config or {}))
            self._inflight.add_done_callback(self._on_compile_done)
        compiled = await asyncio.shield(self._inflight)

        if self._compiled is None:
            self._compiled = compiled
        return self._compiled

    def _on_compile_done(self, task: asyncio.Task) -> None:
        # runs even when every caller was cancelled before the task finished
        cancelled = task.cancelled()
        error = None if cancelled else task.exception()
        if error is not None:
            logger.warning(f"Config resolution failed: {error}")
        if self._inflight is not task:
            return
        if cancelled or error is not None:
            self._inflight = None
        elif self._compiled is None:
            self._compiled = task.result()

    async def _compile(self, categories: Sequence[str], base_config: Dict[str, Any]) -> Dict[str, Any]:
        tree = extract_environment(categories, self.environ, deepcopy(base_config))

        descriptor = tree.get(self.settings.descriptor_key)
        bucket_name = descriptor.get("bucket_name") if isinstance(descriptor, dict) else None
        if bucket_name:
            tree = await self._merge_bucket(str(bucket_name), descriptor, tree)
        else:
            logger.debug("No bucket_name configured; skipping remote documents")

        compiled = decode_tree(tree)
        logger.info(f"Config compiled: {len(compiled)} top-level sections")
        return compiled

    async def _merge_bucket(self, bucket_name: str, descriptor: Mapping[str, Any], tree: Dict[str, Any]) -> Dict[str, Any]:
        try:
            store = self.store_factory(descriptor)
        except GoogleAuthError as e:
            raise BucketListingError(bucket_name, str(e)) from e

        coordinator = MergeCoordinator(tree, self.settings.on_unparseable)
        async with self.session_factory(self.settings) as session:
            fetcher = DocumentFetcher(store, session, self.settings)
            count = await BucketScanner(store, fetcher).scan(bucket_name, coordinator)

        if count:
            logger.info(f"Merged {len(coordinator.merged_sources)} of {count} documents from {bucket_name}")
        return coordinator.result


_default_aggregator: Optional[ConfigAggregator] = None


def get_default_aggregator() -> ConfigAggregator:
    global _default_aggregator
    if _default_aggregator is None:
        _default_aggregator = ConfigAggregator()
    return _default_aggregator


async def resolve_config(
    categories: Optional[Sequence[str]] = None,
    base_config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Resolve through the process-wide default aggregator."""
    return await get_default_aggregator().resolve(categories, base_config)
