"""Enclosing-class lookup.

Python keeps no back-reference from a nested class to the class whose body
defined it, so the enclosing class is recovered from ``__qualname__``: the
qualified name prefix is resolved attribute by attribute starting at the
defining module. Classes defined inside a function (``<locals>`` in the
qualified name) cannot be reached that way and are treated as top-level.
"""

from __future__ import annotations

import logging
import sys
from typing import Protocol


logger = logging.getLogger(__name__)

_LOCALS_MARKER = "<locals>"


class EnclosingClassLookup(Protocol):
    """Return the immediately enclosing class of ``cls``, or None."""

    def __call__(self, cls: type) -> type | None: ...


def enclosing_class(cls: type) -> type | None:
    """Return the class whose body defined ``cls``, or None for top-level classes."""
    qualname = getattr(cls, "__qualname__", "")
    parts = qualname.split(".")
    if len(parts) < 2 or _LOCALS_MARKER in parts[:-1]:
        return None

    module = sys.modules.get(getattr(cls, "__module__", ""))
    if module is None:
        logger.debug("Module of %s is not loaded; treating it as top-level", qualname)
        return None

    owner: object = module
    for part in parts[:-1]:
        owner = getattr(owner, part, None)
        if owner is None:
            return None

    if not isinstance(owner, type) or getattr(owner, parts[-1], None) is not cls:
        # Qualified name is stale (class renamed, replaced or defined in a method)
        return None
    return owner


def enclosing_chain(cls: type, lookup: EnclosingClassLookup = enclosing_class) -> list[type]:
    """Return the enclosing classes of ``cls`` from innermost to outermost."""
    chain: list[type] = []
    seen = {id(cls)}
    current = lookup(cls)
    while current is not None and id(current) not in seen:
        chain.append(current)
        seen.add(id(current))
        current = lookup(current)
    return chain


__all__ = ["EnclosingClassLookup", "enclosing_chain", "enclosing_class"]
