"""
Remote document fetcher.

Each fetch mints its own signed access grant: a fresh nonce, a V4 signed URL
that requires the nonce header, and exactly one GET through that URL. Grants
are never cached or reused.
"""

import asyncio
import json
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Union

import aiohttp
from loguru import logger

from aggregator.errors import DocumentFetchError
from aggregator.object_store import ObjectStore, StoredObject
from aggregator.settings import AggregatorSettings

NONCE_BYTES = 32


@dataclass(frozen=True)
class ParsedFragment:
    source: str
    tree: Dict[str, Any]


@dataclass(frozen=True)
class OpaqueFragment:
    """Document body that did not parse to a JSON object."""

    source: str
    body: bytes
    reason: str


Fragment = Union[ParsedFragment, OpaqueFragment]


def generate_nonce() -> str:
    """Unpredictable per-request token (CSPRNG)."""
    return secrets.token_urlsafe(NONCE_BYTES)


def parse_fragment(source: str, body: bytes) -> Fragment:
    """Classify a downloaded body as a parsed tree or an opaque fragment."""
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return OpaqueFragment(source=source, body=body, reason="invalid-json")
    if not isinstance(data, dict):
        return OpaqueFragment(source=source, body=body, reason="not-an-object")
    return ParsedFragment(source=source, tree=data)


class DocumentFetcher:
    def __init__(self, store: ObjectStore, session: aiohttp.ClientSession, settings: AggregatorSettings):
        self.store = store
        self.session = session
        self.settings = settings

    async def fetch(self, obj: StoredObject) -> Fragment:
        """
        Download one document through a freshly signed URL.

        Args:
            obj: Object to download

        Returns:
            ParsedFragment or OpaqueFragment

        Raises:
            SignedUrlError: If the URL cannot be signed
            DocumentFetchError: On network failure or non-2xx response
        """
        nonce = generate_nonce()
        url = await self.store.sign_read_url(
            obj,
            expiry_seconds=self.settings.signed_url_expiry_seconds,
            content_type=self.settings.content_type,
            headers={self.settings.nonce_header: nonce},
        )

        headers = {
            "accept": self.settings.content_type,
            "content-type": self.settings.content_type,
            self.settings.nonce_header: nonce,
        }
        try:
            async with self.session.get(url, headers=headers) as resp:
                if not (200 <= resp.status <= 299):
                    logger.error(f"statusCode: {resp.status} for {obj.label}")
                    logger.error(f"headers: {dict(resp.headers)}")
                    raise DocumentFetchError(
                        obj.label,
                        f"File unavailable ({resp.status}) {obj.name}",
                        status=resp.status,
                    )
                body = await resp.read()
        except aiohttp.ClientError as e:
            raise DocumentFetchError(obj.label, f"Download failed for {obj.name}: {e}") from e
        except asyncio.TimeoutError as e:
            raise DocumentFetchError(obj.label, f"Download timed out for {obj.name}") from e

        logger.debug(f"Fetched {obj.label} ({len(body)} bytes)")
        return parse_fragment(obj.label, body)
