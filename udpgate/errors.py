"""Errors raised when a configuration fails validation."""

from __future__ import annotations

from collections.abc import Sequence


class ValidationError(Exception):
    """Base class for configuration validation failures."""


class NotUniqueError(ValidationError):
    """A field that must be unique is repeated."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"field {field} is not unique")


class EmptyListError(ValidationError):
    """A list field that must hold entries is empty."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"field {field} cannot be empty")


class ValueInvalidError(ValidationError):
    """A field holds an invalid value, with optional clarification and examples."""

    def __init__(
        self,
        field: str,
        clarification: str | None = None,
        examples: Sequence[str] | None = None,
    ) -> None:
        self.field = field
        self.clarification = clarification
        self.examples = None if examples is None else list(examples)
        super().__init__(str(self))

    def __str__(self) -> str:
        message = f"{self.field} has invalid value"
        if self.clarification is not None:
            message += f": {self.clarification}"
        if self.examples is not None:
            message += ": " + ", ".join(self.examples)
        return message

    def _key(self) -> tuple:
        examples = None if self.examples is None else tuple(self.examples)
        return self.field, self.clarification, examples

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueInvalidError):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())