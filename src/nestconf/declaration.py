"""The nested test configuration marker.

``NestedTestConfiguration`` controls how test configuration declared on a
class reaches the classes nested inside it. If it is neither present nor
meta-present on a class (or on any class enclosing it), configuration does not
propagate and nested classes have to declare their own
(see :attr:`EnclosingConfiguration.OVERRIDE`). To let a nested class inherit
from its enclosing class, decorate the enclosing class:

    @nested_test_configuration(EnclosingConfiguration.INHERIT)
    class TestCheckout:
        class TestWithCoupon: ...

The marker may also be bundled into composed annotations with
:func:`nestconf.annotations.compose`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nestconf.annotations import Annotation, find_annotation
from nestconf.types import EnclosingConfiguration


@dataclass(frozen=True)
class NestedTestConfiguration(Annotation):
    """Declares the enclosing configuration mode for a class or method."""

    value: EnclosingConfiguration

    def __post_init__(self) -> None:
        if not isinstance(self.value, EnclosingConfiguration):
            # Frozen dataclass: bypass __setattr__ to normalize string input
            object.__setattr__(self, "value", EnclosingConfiguration.parse(self.value))


def nested_test_configuration(mode: EnclosingConfiguration | str) -> NestedTestConfiguration:
    """Decorator form of :class:`NestedTestConfiguration`."""
    return NestedTestConfiguration(mode)  # type: ignore[arg-type]


def has_explicit_mode(target: Any) -> EnclosingConfiguration | None:
    """Return the mode declared on ``target`` itself, or None.

    Direct declarations win over meta-present ones, and a class's own
    declarations win over its superclasses'. Enclosing classes are not
    searched; climbing them is the resolver's job.
    """
    declaration = find_annotation(target, NestedTestConfiguration)
    return declaration.value if declaration else None


__all__ = ["NestedTestConfiguration", "has_explicit_mode", "nested_test_configuration"]
