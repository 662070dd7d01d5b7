"""Exceptions raised while aggregating configuration."""

from typing import Optional


class ConfigAggregationError(Exception):
    """Base class for every failure that aborts a config resolution."""


class BucketListingError(ConfigAggregationError):
    """The bucket could not be listed; no document was fetched."""

    def __init__(self, bucket_name: str, message: str):
        super().__init__(f"Failed to list bucket {bucket_name}: {message}")
        self.bucket_name = bucket_name


class SignedUrlError(ConfigAggregationError):
    """A signed read URL could not be generated for an object."""

    def __init__(self, object_name: str, message: str):
        super().__init__(f"Failed to sign URL for {object_name}: {message}")
        self.object_name = object_name


class DocumentFetchError(ConfigAggregationError):
    """Downloading a document through its signed URL failed."""

    def __init__(self, object_name: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.object_name = object_name
        self.status = status


class UnparseableDocumentError(ConfigAggregationError):
    """A fetched document is not a JSON object and the policy is to abort."""

    def __init__(self, object_name: str, reason: str):
        super().__init__(f"Document {object_name} is not a JSON object ({reason})")
        self.object_name = object_name
        self.reason = reason
