"""Resolution of enclosing configuration for nested test classes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from nestconf.cache import ResolutionCache
from nestconf.declaration import has_explicit_mode
from nestconf.enclosing import EnclosingClassLookup, enclosing_class
from nestconf.types import EnclosingConfiguration


logger = logging.getLogger(__name__)

ModeLookup = Callable[[type], EnclosingConfiguration | None]


@dataclass(frozen=True, slots=True)
class Resolution:
    """Resolved enclosing configuration for one class.

    Attributes
    ----------
    mode
        Effective mode: the nearest explicit declaration on the class or its
        enclosing classes, otherwise the resolver's default.
    inherited
        Whether the class sees configuration declared on its enclosing class.
        Always False for classes without an enclosing class.
    enclosing
        Immediately enclosing class, or None.
    declared_on
        Class whose declaration decided ``mode``, or None if the default applied.
    """

    mode: EnclosingConfiguration
    inherited: bool
    enclosing: type | None = None
    declared_on: type | None = None


class EnclosingConfigurationResolver:
    """Decides whether enclosing-class configuration is visible to a class.

    The enclosing chain is climbed outward from the class. A class without a
    declaration is transparent, and the first explicit declaration found is
    authoritative. If the chain is exhausted the default mode applies.
    """

    def __init__(
        self,
        cache: ResolutionCache[Resolution] | None = None,
        *,
        enclosing_lookup: EnclosingClassLookup = enclosing_class,
        mode_lookup: ModeLookup = has_explicit_mode,
        default_mode: EnclosingConfiguration = EnclosingConfiguration.OVERRIDE,
    ) -> None:
        self.cache: ResolutionCache[Resolution] = cache if cache is not None else ResolutionCache()
        self.default_mode = default_mode
        self._enclosing_lookup = enclosing_lookup
        self._mode_lookup = mode_lookup

    def resolve(self, cls: type) -> Resolution:
        return self.cache.get_or_compute(cls, self._compute)

    def effective_mode(self, cls: type) -> EnclosingConfiguration:
        """Return the effective mode for ``cls``."""
        return self.resolve(cls).mode

    def is_configuration_inherited(self, cls: type) -> bool:
        """Return True if ``cls`` receives configuration from its enclosing class."""
        return self.resolve(cls).inherited

    def enclosing_class(self, cls: type) -> type | None:
        """Return the enclosing class of ``cls`` as seen by this resolver."""
        return self.resolve(cls).enclosing

    def _compute(self, cls: type) -> Resolution:
        # Classes climbed past, each with its own enclosing class
        visited: list[tuple[type, type | None]] = []
        seen = {id(cls)}
        mode, declared_on = self.default_mode, None

        current = cls
        parent = self._enclosing_lookup(cls)
        enclosing = parent

        while True:
            if current is not cls:
                visited.append((current, parent))

            explicit = self._mode_lookup(current)
            if explicit is not None:
                mode, declared_on = explicit, current
                break
            if parent is None or id(parent) in seen:
                break

            cached = self.cache.peek(parent)
            if cached is not None:
                mode, declared_on = cached.mode, cached.declared_on
                break

            seen.add(id(parent))
            current = parent
            parent = self._enclosing_lookup(current)

        for ancestor, ancestor_enclosing in visited:
            self.cache.put(ancestor, self._outcome(mode, ancestor_enclosing, declared_on))

        resolution = self._outcome(mode, enclosing, declared_on)
        logger.debug(
            "Resolved %s: mode=%s inherited=%s declared_on=%s",
            cls.__qualname__,
            mode.value,
            resolution.inherited,
            declared_on.__qualname__ if declared_on else None,
        )
        return resolution

    @staticmethod
    def _outcome(
        mode: EnclosingConfiguration, enclosing: type | None, declared_on: type | None
    ) -> Resolution:
        inherited = enclosing is not None and mode is EnclosingConfiguration.INHERIT
        return Resolution(
            mode=mode,
            inherited=inherited,
            enclosing=enclosing,
            declared_on=declared_on,
        )


_default_resolver: EnclosingConfigurationResolver | None = None


def get_default_resolver() -> EnclosingConfigurationResolver:
    """Return the process-wide resolver, creating it from loaded settings.

    Creation is not locked. Threads racing on the first call may each build a
    resolver, and all but the last one stored are discarded with their caches.
    Resolutions are pure, so callers still get identical answers.
    """
    global _default_resolver
    if _default_resolver is None:
        from nestconf.config import load_config

        config = load_config()
        _default_resolver = EnclosingConfigurationResolver(
            default_mode=config.enclosing_configuration,
        )
    return _default_resolver


def reset_default_resolver() -> None:
    """Drop the process-wide resolver and its cache."""
    global _default_resolver
    _default_resolver = None


def effective_mode(cls: type) -> EnclosingConfiguration:
    """Return the effective mode for ``cls`` using the default resolver."""
    return get_default_resolver().effective_mode(cls)


def is_configuration_inherited(cls: type) -> bool:
    """Return True if ``cls`` inherits enclosing configuration (default resolver)."""
    return get_default_resolver().is_configuration_inherited(cls)


__all__ = [
    "EnclosingConfigurationResolver",
    "ModeLookup",
    "Resolution",
    "effective_mode",
    "get_default_resolver",
    "is_configuration_inherited",
    "reset_default_resolver",
]
