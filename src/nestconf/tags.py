"""Tagging utilities for test classes and functions.

Tags are the configuration family that discovery propagates through nested
classes: an inner class only sees its enclosing class's tags if it inherits
enclosing configuration.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, ClassVar

from nestconf.annotations import Annotation, find_all_on, search_owners
from nestconf.descriptors import find_all_annotations
from nestconf.resolver import EnclosingConfigurationResolver


@dataclass
class TagData:
    """Tag metadata attached to callables or classes."""

    tags: set[str] = field(default_factory=set)
    skip_reason: str | None = None
    xfail_reason: str | None = None
    xfail_strict: bool = False


@dataclass(frozen=True)
class Tags(Annotation):
    """A single tag declaration. May be applied any number of times."""

    names: frozenset[str] = frozenset()
    skip_reason: str | None = None
    xfail_reason: str | None = None
    xfail_strict: bool = False

    repeatable: ClassVar[bool] = True

    def to_tag_data(self) -> TagData:
        return TagData(
            tags=set(self.names),
            skip_reason=self.skip_reason,
            xfail_reason=self.xfail_reason,
            xfail_strict=self.xfail_strict,
        )


def merge_tag_data(*datas: TagData | None) -> TagData:
    """Merge tag metadata, later entries overriding earlier ones."""
    merged = TagData()
    for data in datas:
        if not data:
            continue
        merged.tags.update(data.tags)
        if data.skip_reason is not None:
            merged.skip_reason = data.skip_reason
        if data.xfail_reason is not None:
            merged.xfail_reason = data.xfail_reason
            merged.xfail_strict = data.xfail_strict
    return merged


def _merge_declarations(declarations: Iterable[Tags]) -> TagData:
    return merge_tag_data(*(declaration.to_tag_data() for declaration in declarations))


def get_tag_data(target: Any) -> TagData:
    """Return tag metadata declared on the target and, for classes, its superclasses."""
    declarations: list[Tags] = []
    # Outermost first so nearer declarations override
    for owner in reversed(search_owners(target)):
        declarations.extend(reversed(find_all_on(owner, Tags)))
    return _merge_declarations(declarations)


def effective_tag_data(
    cls: type,
    resolver: EnclosingConfigurationResolver | None = None,
) -> TagData:
    """Return tag metadata visible to ``cls``, including inherited enclosing tags."""
    descriptors = find_all_annotations(cls, Tags, resolver)
    return _merge_declarations(d.annotation for d in reversed(descriptors))


class TagDecorator:
    """Primary entry-point for tagging tests."""

    def __call__(self, *names: str) -> Tags:
        return Tags(names=frozenset(str(name) for name in names if name))

    def skip(self, *, reason: str | None = None) -> Tags:
        return Tags(names=frozenset({"skip"}), skip_reason=reason or "skipped via tag")

    def xfail(self, *, reason: str | None = None, strict: bool = False) -> Tags:
        return Tags(
            names=frozenset({"xfail"}),
            xfail_reason=reason or "expected failure",
            xfail_strict=strict,
        )


tag = TagDecorator()

__all__ = ["TagData", "Tags", "effective_tag_data", "get_tag_data", "merge_tag_data", "tag"]
