"""Search for configuration annotations visible to a test class.

A configuration annotation declared on a test class is visible to the class,
its subclasses and, when the resolver says so, to classes nested inside it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from nestconf.annotations import Annotation, find_all_on, find_declaring, search_owners
from nestconf.resolver import EnclosingConfigurationResolver, get_default_resolver


A = TypeVar("A", bound=Annotation)


@dataclass(frozen=True, slots=True)
class AnnotationDescriptor(Generic[A]):
    """Where a configuration annotation was found.

    Attributes
    ----------
    root_declaring_class
        Class in the enclosing chain where the search found the annotation.
    declaring_class
        Class that actually declares it: ``root_declaring_class`` or one of
        its superclasses.
    annotation
        The annotation value.
    """

    root_declaring_class: type
    declaring_class: type
    annotation: A


def _visible_chain(
    cls: type, resolver: EnclosingConfigurationResolver
) -> list[type]:
    chain = [cls]
    seen = {id(cls)}
    current = cls
    while resolver.is_configuration_inherited(current):
        current = resolver.enclosing_class(current)
        if current is None or id(current) in seen:
            break
        chain.append(current)
        seen.add(id(current))
    return chain


def find_annotation_descriptor(
    cls: type,
    kind: type[A],
    resolver: EnclosingConfigurationResolver | None = None,
) -> AnnotationDescriptor[A] | None:
    """Return the nearest ``kind`` annotation visible to ``cls``, or None.

    ``cls`` and its superclasses are searched first. The enclosing class is
    searched next only if ``cls`` inherits enclosing configuration, and so on
    outward.
    """
    resolver = resolver or get_default_resolver()
    for root in _visible_chain(cls, resolver):
        found = find_declaring(root, kind)
        if found is not None:
            owner, annotation = found
            return AnnotationDescriptor(
                root_declaring_class=root,
                declaring_class=owner,
                annotation=annotation,
            )
    return None


def find_all_annotations(
    cls: type,
    kind: type[A],
    resolver: EnclosingConfigurationResolver | None = None,
) -> list[AnnotationDescriptor[A]]:
    """Return every ``kind`` annotation visible to ``cls``, innermost first."""
    resolver = resolver or get_default_resolver()
    descriptors: list[AnnotationDescriptor[A]] = []
    for root in _visible_chain(cls, resolver):
        for owner in search_owners(root):
            descriptors.extend(
                AnnotationDescriptor(
                    root_declaring_class=root,
                    declaring_class=owner,
                    annotation=annotation,
                )
                for annotation in find_all_on(owner, kind)
            )
    return descriptors


__all__ = ["AnnotationDescriptor", "find_all_annotations", "find_annotation_descriptor"]
