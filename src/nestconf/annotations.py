"""Attachable annotations and their search.

Annotations are frozen values applied with decorator syntax. They are stored
on the decorated class or function itself, so a search never needs anything
beyond the target object:

    @NestedTestConfiguration(EnclosingConfiguration.INHERIT)
    class TestOuter: ...

A :class:`ComposedAnnotation` bundles other annotations. Applying it makes its
members *meta-present* on the target. Searches return the nearest match:
direct declarations before meta-present ones, shallower meta levels before
deeper ones, and a class's own declarations before those of its superclasses.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

from nestconf.errors import AnnotationConfigurationError


ANNOTATIONS_ATTR = "__nestconf_annotations__"

A = TypeVar("A", bound="Annotation")


@dataclass(frozen=True)
class Annotation:
    """Base class for annotations that can be attached to classes or functions."""

    repeatable: ClassVar[bool] = False

    def __call__(self, target: Any) -> Any:
        attach(target, self)
        return target


@dataclass(frozen=True)
class ComposedAnnotation(Annotation):
    """An annotation that carries other annotations (a meta-annotation)."""

    name: str
    members: tuple[Annotation, ...]

    repeatable: ClassVar[bool] = True


def compose(*members: Annotation, name: str = "composed") -> ComposedAnnotation:
    """Build a composed annotation from ``members``.

    Args:
        members: Annotations made meta-present wherever the result is applied.
        name: Label used in reprs and error messages.
    """
    for member in members:
        if not isinstance(member, Annotation):
            msg = f"compose() expects Annotation instances, got {type(member).__name__}"
            raise TypeError(msg)
    composed = ComposedAnnotation(name=name, members=tuple(members))
    _check_conflicts(composed, _walk((composed,)))
    return composed


def _unwrap(target: Any) -> Any:
    # Bound methods, staticmethod and classmethod objects carry the function in __func__
    return getattr(target, "__func__", target)


def get_declared_annotations(target: Any) -> tuple[Annotation, ...]:
    """Return annotations declared directly on ``target`` (not inherited)."""
    target = _unwrap(target)
    try:
        namespace = vars(target)
    except TypeError:
        return ()
    return tuple(namespace.get(ANNOTATIONS_ATTR, ()))


def _walk(annotations: tuple[Annotation, ...]) -> Iterator[tuple[int, Annotation]]:
    """Yield ``(meta_distance, annotation)`` breadth-first through composed annotations."""
    level = list(annotations)
    distance = 0
    while level:
        next_level: list[Annotation] = []
        for annotation in level:
            yield distance, annotation
            if isinstance(annotation, ComposedAnnotation):
                next_level.extend(annotation.members)
        level = next_level
        distance += 1


def _check_conflicts(owner: Any, candidates: Iterator[tuple[int, Annotation]]) -> None:
    nearest: dict[type[Annotation], tuple[int, Annotation]] = {}
    for distance, annotation in candidates:
        kind = type(annotation)
        if kind.repeatable:
            continue
        seen = nearest.get(kind)
        if seen is None:
            nearest[kind] = (distance, annotation)
        elif seen[0] == distance and seen[1] != annotation:
            msg = (
                f"conflicting {kind.__name__} declarations at the same level: "
                f"{seen[1]!r} and {annotation!r}"
            )
            raise AnnotationConfigurationError(owner, msg)


def attach(target: Any, annotation: Annotation) -> None:
    """Attach ``annotation`` to ``target``.

    Raises:
        AnnotationConfigurationError: If a non-repeatable annotation is declared
            twice directly on ``target``, or if it makes two different values of
            the same non-repeatable kind meta-present at the same level.
    """
    target = _unwrap(target)
    declared = get_declared_annotations(target)
    kind = type(annotation)
    if not kind.repeatable and any(type(existing) is kind for existing in declared):
        msg = f"{kind.__name__} may be declared at most once"
        raise AnnotationConfigurationError(target, msg)

    updated = (*declared, annotation)
    _check_conflicts(target, _walk(updated))
    setattr(target, ANNOTATIONS_ATTR, updated)


def find_all_on(target: Any, kind: type[A]) -> list[A]:
    """Return every annotation of ``kind`` present or meta-present on exactly ``target``.

    Results are ordered nearest first.
    """
    return [
        annotation
        for _, annotation in _walk(get_declared_annotations(target))
        if isinstance(annotation, kind)
    ]


def search_owners(target: Any) -> tuple[Any, ...]:
    """Return ``target`` followed by its superclasses when it is a class."""
    target = _unwrap(target)
    if isinstance(target, type):
        return tuple(cls for cls in target.__mro__ if cls is not object)
    return (target,)


def find_declaring(target: Any, kind: type[A]) -> tuple[Any, A] | None:
    """Return ``(owner, annotation)`` for the nearest ``kind`` annotation.

    ``owner`` is ``target`` itself or the superclass declaring the annotation.
    Enclosing classes are never searched.
    """
    for owner in search_owners(target):
        found = find_all_on(owner, kind)
        if found:
            return owner, found[0]
    return None


def find_annotation(target: Any, kind: type[A]) -> A | None:
    """Return the nearest annotation of ``kind`` on ``target`` or its superclasses."""
    found = find_declaring(target, kind)
    return found[1] if found else None


__all__ = [
    "ANNOTATIONS_ATTR",
    "Annotation",
    "ComposedAnnotation",
    "attach",
    "compose",
    "find_all_on",
    "find_annotation",
    "find_declaring",
    "get_declared_annotations",
    "search_owners",
]
