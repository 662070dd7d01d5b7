"""
Category-based extraction of environment variables.

A variable named ``<CATEGORY>_<KEY>`` is imported as ``tree[category][key]``
when CATEGORY is in the caller's allow-list. Both segments are lower-cased:
``APP_DB_HOST=x`` becomes ``{"app": {"db_host": "x"}}``. Keys already present
in the target tree are never overwritten, and a category that the base
config already holds as a non-mapping (including None) is left alone.

Values are inserted raw. Data-URI decoding happens once, over the whole
compiled tree, in ``aggregator.encoding.decode_tree``.
"""

import os
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from loguru import logger


def split_once(name: str, separator: str = "_") -> Optional[Tuple[str, str]]:
    """Split ``name`` on the first separator; None if either side is empty."""
    head, sep, tail = name.partition(separator)
    if not sep or not head or not tail:
        return None
    return head, tail


def extract_environment(
    categories: Iterable[str],
    environ: Optional[Mapping[str, str]] = None,
    target: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Import allow-listed environment variables into a config tree.

    Args:
        categories: Allow-listed category prefixes (matched case-insensitively)
        environ: Environment mapping (default: os.environ)
        target: Tree to extend in place (default: new dict)

    Returns:
        The extended tree
    """
    tree: Dict[str, Any] = {} if target is None else target
    allowed = {c.upper() for c in categories or [] if c}
    if not allowed:
        return tree

    env = os.environ if environ is None else environ
    imported = 0
    for name in list(env.keys()):
        parts = split_once(name)
        if parts is None or parts[0].upper() not in allowed:
            continue

        category, key = parts[0].lower(), parts[1].lower()
        section = tree.get(category)
        if category in tree and not isinstance(section, dict):
            logger.debug(f"Skipping {name}: '{category}' is not a mapping in base config")
            continue
        if section is not None and key in section:
            continue

        value = env[name]
        if not value:
            continue
        if section is None:
            section = tree[category] = {}
        section[key] = value
        imported += 1

    logger.debug(f"Imported {imported} environment values for categories {sorted(allowed)}")
    return tree
