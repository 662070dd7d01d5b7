"""
Shared fakes for aggregator tests.

FakeStore stands in for the GCS adapter and FakeSession for aiohttp, so no
test touches the network.
"""

import asyncio
import base64
import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import aiohttp
import pytest

from aggregator.errors import BucketListingError, SignedUrlError
from aggregator.object_store import ObjectStore, StoredObject


def make_object(name: str, content_type: Optional[str] = "application/json", bucket: str = "b1", generation: int = 1) -> StoredObject:
    return StoredObject(bucket=bucket, name=name, content_type=content_type, generation=generation)


class FakeStore(ObjectStore):
    def __init__(self, objects: Optional[List[StoredObject]] = None, fail_listing: bool = False, fail_signing: Optional[set] = None):
        self.objects = objects or []
        self.fail_listing = fail_listing
        self.fail_signing = fail_signing or set()
        self.list_calls: List[str] = []
        self.sign_calls: List[Dict[str, Any]] = []

    async def list_objects(self, bucket_name: str) -> List[StoredObject]:
        self.list_calls.append(bucket_name)
        if self.fail_listing:
            raise BucketListingError(bucket_name, "403 Forbidden")
        return list(self.objects)

    async def sign_read_url(self, obj, *, expiry_seconds, content_type, headers):
        self.sign_calls.append(
            {"name": obj.name, "expiry_seconds": expiry_seconds, "content_type": content_type, "headers": dict(headers)}
        )
        if obj.name in self.fail_signing:
            raise SignedUrlError(obj.label, "no private key")
        return f"https://storage.example.com/{obj.bucket}/{obj.name}?X-Goog-Signature=sig{len(self.sign_calls)}"


class FakeResponse:
    def __init__(self, status: int = 200, body: bytes = b"{}", headers: Optional[Dict[str, str]] = None):
        self.status = status
        self._body = body
        self.headers = headers or {"content-type": "application/json"}

    async def read(self) -> bytes:
        return self._body


class _RequestContext:
    def __init__(self, session: "FakeSession", name: str):
        self.session = session
        self.name = name

    async def __aenter__(self) -> FakeResponse:
        delay = self.session.delays.get(self.name, 0)
        try:
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.session.cancelled.append(self.name)
            raise
        error = self.session.errors.get(self.name)
        if error is not None:
            raise error
        self.session.completed.append(self.name)
        return self.session.responses.get(self.name, FakeResponse(status=404, body=b"Not Found"))

    async def __aexit__(self, *exc) -> bool:
        return False


class FakeSession:
    """Minimal stand-in for aiohttp.ClientSession keyed by object name."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None):
        self.responses: Dict[str, FakeResponse] = {}
        self.delays: Dict[str, float] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[Dict[str, Any]] = []
        self.completed: List[str] = []
        self.cancelled: List[str] = []
        self.closed = False
        for name, doc in (documents or {}).items():
            self.add_json(name, doc)

    def add_json(self, name: str, doc: Any) -> None:
        self.responses[name] = FakeResponse(body=json.dumps(doc).encode("utf-8"))

    def add_raw(self, name: str, body: bytes, status: int = 200) -> None:
        self.responses[name] = FakeResponse(status=status, body=body)

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> _RequestContext:
        parsed = urlparse(url)
        name = parsed.path.split("/", 2)[2]
        self.calls.append({"url": url, "name": name, "headers": dict(headers or {}), "query": parse_qs(parsed.query)})
        return _RequestContext(self, name)

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc) -> bool:
        self.closed = True
        return False


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client_error():
    return aiohttp.ClientConnectionError("connection reset")


def encode_data_uri(data, content_type="text/plain"):
    """Build a data URI, the inverse of decode_if_encoded."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    return f"data:{content_type};base64,{base64.b64encode(raw).decode('ascii')}"
