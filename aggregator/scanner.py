"""
Bucket scanner: fan-out/fan-in over the JSON documents of one bucket.

One fetch task is launched per qualifying object, in listing order, with no
concurrency cap. Completed fragments are handed to the merge coordinator in
completion order. The first failure cancels every pending fetch and is
re-raised, so a partially merged tree never leaves the scan.
"""

import asyncio
from typing import List

from loguru import logger

from aggregator.fetcher import DocumentFetcher
from aggregator.merge import MergeCoordinator
from aggregator.object_store import ObjectStore, StoredObject


class BucketScanner:
    def __init__(self, store: ObjectStore, fetcher: DocumentFetcher):
        self.store = store
        self.fetcher = fetcher

    def select_documents(self, objects: List[StoredObject]) -> List[StoredObject]:
        """Keep objects whose content type is exactly the configured JSON type."""
        content_type = self.fetcher.settings.content_type
        selected = []
        for obj in objects:
            if obj.content_type == content_type:
                selected.append(obj)
            else:
                logger.debug(f"Ignoring {obj.label} (content type {obj.content_type})")
        return selected

    async def scan(self, bucket_name: str, coordinator: MergeCoordinator) -> int:
        """
        Fetch every JSON document of a bucket into ``coordinator``.

        Args:
            bucket_name: Bucket to scan
            coordinator: Collector receiving each fragment as it completes

        Returns:
            Number of documents fetched

        Raises:
            ConfigAggregationError: On the first listing, signing, download or
                parse failure
        """
        objects = await self.store.list_objects(bucket_name)
        documents = self.select_documents(objects)
        logger.info(f"Bucket {bucket_name}: {len(objects)} objects, {len(documents)} JSON documents")
        if not documents:
            return 0

        tasks = [asyncio.create_task(self.fetcher.fetch(obj)) for obj in documents]
        try:
            for next_done in asyncio.as_completed(tasks):
                fragment = await next_done
                coordinator.apply(fragment)
        except BaseException:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                logger.warning(f"Cancelling {len(pending)} pending fetches from {bucket_name}")
            # collect outcomes so no task exception goes unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return len(tasks)
