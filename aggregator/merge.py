"""
Deep merge and precedence rules for config trees.

Precedence across a resolution:
    base config   > environment values  (environment never overwrites)
    remote docs   > base + environment  (documents override)
    remote doc B  > remote doc A        (when B completes after A)

Remote-vs-remote collisions therefore depend on fetch completion order.
"""

from copy import deepcopy
from typing import Any, Dict, List

from loguru import logger

from aggregator.errors import UnparseableDocumentError
from aggregator.fetcher import Fragment, OpaqueFragment, ParsedFragment
from aggregator.settings import UNPARSEABLE_POLICIES


def deep_merge(base: Dict[str, Any], update: Dict[str, Any], _path: str = "") -> Dict[str, Any]:
    """
    Merge ``update`` into a copy of ``base``.

    - dict + dict: merged key-wise
    - list + list: concatenated, base items first
    - anything else: update wins

    Neither input is mutated.
    """
    result: Dict[str, Any] = deepcopy(base)

    for key, value in update.items():
        if key not in result:
            result[key] = deepcopy(value)
            continue

        current = result[key]
        path = f"{_path}.{key}" if _path else key
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value, path)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = current + deepcopy(value)
        else:
            if current != value:
                logger.debug(f"Overriding '{path}'")
            result[key] = deepcopy(value)

    return result


class MergeCoordinator:
    """
    Single collector for remote fragments.

    Owns the working tree of one resolution. Fragments are applied one at a
    time, in the order they are handed over, and each application replaces
    the working tree in a single step.
    """

    def __init__(self, initial: Dict[str, Any], on_unparseable: str = "abort"):
        if on_unparseable not in UNPARSEABLE_POLICIES:
            raise ValueError(f"on_unparseable must be one of {list(UNPARSEABLE_POLICIES)}")
        self.working: Dict[str, Any] = deepcopy(initial)
        self.on_unparseable = on_unparseable
        self.merged_sources: List[str] = []
        self.skipped_sources: List[str] = []

    def apply(self, fragment: Fragment) -> None:
        if isinstance(fragment, ParsedFragment):
            self.working = deep_merge(self.working, fragment.tree)
            self.merged_sources.append(fragment.source)
            logger.debug(f"Merged {fragment.source} ({len(fragment.tree)} top-level keys)")
            return

        if isinstance(fragment, OpaqueFragment):
            if self.on_unparseable == "abort":
                raise UnparseableDocumentError(fragment.source, fragment.reason)
            logger.warning(f"Skipping {fragment.source}: not a JSON object ({fragment.reason})")
            self.skipped_sources.append(fragment.source)
            return

        raise TypeError(f"Unsupported fragment type: {type(fragment).__name__}")

    @property
    def result(self) -> Dict[str, Any]:
        return self.working

