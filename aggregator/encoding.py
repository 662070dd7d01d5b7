"""
Decoding of base64 data-URI values.

Environment variables and remote documents may carry binary or multi-line
values as ``data:<content-type>[;<param>=<value>...];base64,<payload>``
(RFC 2397). Text content types are returned as ``str``, everything else as
``bytes``. Values that do not match, or whose payload is not valid base64,
are returned unchanged.
"""

import base64
import binascii
import re
from typing import Any, Optional, Union

DATA_URI_RE = re.compile(
    r"^data:(?P<content_type>[^;,]+)(?P<params>(?:;[^;,=]+=[^;,]*)*);base64,(?P<payload>.*)$",
    re.DOTALL,
)


def decode_if_encoded(value: Any) -> Optional[Union[str, bytes, Any]]:
    """
    Decode a data-URI string, or return it unchanged.

    Args:
        value: Candidate value

    Returns:
        None for an empty value, decoded str/bytes for a data URI,
        otherwise the original value
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        return value

    match = DATA_URI_RE.match(value)
    if not match:
        return value

    payload = "".join(match.group("payload").split())
    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return value

    if match.group("content_type").strip().lower().startswith("text/"):
        try:
            return decoded.decode("utf-8")
        except UnicodeDecodeError:
            return value
    return decoded


def decode_tree(tree: Any) -> Any:
    """Return a copy of ``tree`` with every non-empty string leaf decoded."""
    if isinstance(tree, dict):
        return {key: decode_tree(value) for key, value in tree.items()}
    if isinstance(tree, list):
        return [decode_tree(item) for item in tree]
    if isinstance(tree, str) and tree:
        return decode_if_encoded(tree)
    return tree

