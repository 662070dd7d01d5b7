"""
Cloud Config Aggregator

Builds a runtime configuration tree from a base config, allow-listed
environment categories and JSON documents stored in a GCS bucket.
"""

from aggregator.aggregator import ConfigAggregator, resolve_config
from aggregator.encoding import decode_if_encoded, decode_tree
from aggregator.errors import (
    BucketListingError,
    ConfigAggregationError,
    DocumentFetchError,
    SignedUrlError,
    UnparseableDocumentError,
)
from aggregator.settings import AggregatorSettings, load_settings

__version__ = "1.0.0"

__all__ = [
    "AggregatorSettings",
    "BucketListingError",
    "ConfigAggregationError",
    "ConfigAggregator",
    "DocumentFetchError",
    "SignedUrlError",
    "UnparseableDocumentError",
    "decode_if_encoded",
    "decode_tree",
    "load_settings",
    "resolve_config",
]
