"""Error types for nestconf."""


class NestconfError(Exception):
    """Base class for nestconf errors."""


class AnnotationConfigurationError(NestconfError):
    """Raised when annotations are declared inconsistently (developer error)."""

    def __init__(self, target: object, message: str) -> None:
        self.target = target
        name = getattr(target, "__qualname__", repr(target))
        super().__init__(f"{name}: {message}")
