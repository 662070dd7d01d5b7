"""
Object-storage collaborator.

Lists bucket objects and mints V4 signed read URLs. The Google Cloud Storage
client is synchronous, so every call is pushed to a worker thread with
``asyncio.to_thread`` to keep the event loop free.

Descriptor keys (from the ``config`` section of the tree):
- bucket_name: Bucket to scan (required)
- project_id: GCP project ID (optional)
- key_filename: Service account JSON key path (optional; default credentials otherwise)
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.cloud.exceptions import GoogleCloudError
from loguru import logger

from aggregator.errors import BucketListingError, SignedUrlError


@dataclass
class StoredObject:
    bucket: str
    name: str
    content_type: Optional[str]
    generation: Optional[int] = None
    handle: Any = None

    @property
    def label(self) -> str:
        if self.generation is None:
            return f"gs://{self.bucket}/{self.name}"
        return f"gs://{self.bucket}/{self.name}#{self.generation}"


class ObjectStore(ABC):
    """Interface the bucket scanner and document fetcher depend on."""

    @abstractmethod
    async def list_objects(self, bucket_name: str) -> List[StoredObject]:
        """Return every object version in the bucket, in listing order."""
        ...

    @abstractmethod
    async def sign_read_url(
        self,
        obj: StoredObject,
        *,
        expiry_seconds: int,
        content_type: str,
        headers: Dict[str, str],
    ) -> str:
        """Return a signed GET URL that requires ``headers`` on the request."""
        ...


class GCSObjectStore(ObjectStore):
    """Google Cloud Storage implementation of :class:`ObjectStore`."""

    def __init__(self, client: storage.Client):
        self.client = client

    @classmethod
    def from_descriptor(cls, descriptor: Mapping[str, Any]) -> "GCSObjectStore":
        project_id = descriptor.get("project_id") or None
        key_filename = descriptor.get("key_filename") or None
        if key_filename:
            logger.debug(f"GCS client from service account key: project={project_id}")
            client = storage.Client.from_service_account_json(key_filename, project=project_id)
        else:
            logger.debug(f"GCS client from default credentials: project={project_id}")
            client = storage.Client(project=project_id)
        return cls(client)

    def _list_blobs(self, bucket_name: str) -> List[StoredObject]:
        return [
            StoredObject(
                bucket=bucket_name,
                name=blob.name,
                content_type=blob.content_type,
                generation=blob.generation,
                handle=blob,
            )
            for blob in self.client.list_blobs(bucket_name, versions=True)
        ]

    async def list_objects(self, bucket_name: str) -> List[StoredObject]:
        try:
            return await asyncio.to_thread(self._list_blobs, bucket_name)
        except (GoogleCloudError, GoogleAuthError) as e:
            raise BucketListingError(bucket_name, str(e)) from e

    async def sign_read_url(
        self,
        obj: StoredObject,
        *,
        expiry_seconds: int,
        content_type: str,
        headers: Dict[str, str],
    ) -> str:
        blob = obj.handle
        if blob is None:
            blob = self.client.bucket(obj.bucket).blob(obj.name, generation=obj.generation)
        try:
            return await asyncio.to_thread(
                blob.generate_signed_url,
                version="v4",
                method="GET",
                expiration=timedelta(seconds=expiry_seconds),
                content_type=content_type,
                headers=headers,
                generation=obj.generation,
            )
        except (GoogleCloudError, GoogleAuthError, AttributeError, ValueError) as e:
            # AttributeError: credentials without a private key cannot sign
            raise SignedUrlError(obj.label, str(e)) from e


def get_object_store(descriptor: Mapping[str, Any]) -> ObjectStore:
    """Create the object store for a storage descriptor."""
    return GCSObjectStore.from_descriptor(descriptor)
