"""Shared types for nestconf."""

from enum import Enum


class EnclosingConfiguration(Enum):
    """How test configuration from enclosing classes reaches nested classes."""

    INHERIT = "inherit"  # Enclosing configuration is visible to the nested class
    OVERRIDE = "override"  # Nested class declares its own configuration

    @classmethod
    def parse(cls, text: str) -> "EnclosingConfiguration":
        """Parse a mode name case-insensitively."""
        normalized = str(text).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        msg = f"Invalid enclosing configuration mode: {text!r}. Expected 'inherit' or 'override'"
        raise ValueError(msg)
