"""Input validation package."""

from manjaliof.validation.validator import InputValidator, InvalidInputError

__all__ = ["InputValidator", "InvalidInputError"]
