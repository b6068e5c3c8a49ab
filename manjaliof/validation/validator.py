"""
Input Validation

DESIGN DECISION: The ledger backends trust their inputs.
Names, sellers and info are checked here, in the caller, before any
storage operation runs:

- name: non-empty, bounded length, restricted charset
- seller: member of the configured allow-list
- info: bounded length

IMPORTANT: Validation NEVER silently fixes input.
It rejects it with a message the user can act on.
"""

import re
from typing import Optional

from manjaliof.config import InputSettings, get_settings


NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class InvalidInputError(Exception):
    """User input rejected before reaching the ledger."""
    pass


class InputValidator:
    """
    Validates user-supplied values against the configured limits.
    """

    def __init__(self, settings: Optional[InputSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Input limits. Loaded from the environment if None.
        """
        self._settings = settings or get_settings().input

    @property
    def sellers(self) -> list[str]:
        return self._settings.sellers_list

    def validate_name(self, name: str) -> str:
        if not name:
            raise InvalidInputError("name can't be empty")
        if len(name) > self._settings.name_max_length:
            raise InvalidInputError(
                f"name can't be longer than {self._settings.name_max_length} characters"
            )
        if not NAME_PATTERN.match(name):
            raise InvalidInputError(
                f"invalid name '{name}': only letters, digits, '_', '.' and '-' are allowed"
            )
        return name

    def validate_seller(self, seller: str) -> str:
        if seller not in self.sellers:
            raise InvalidInputError(
                f"invalid seller '{seller}': must be one of {', '.join(self.sellers)}"
            )
        return seller

    def validate_info(self, info: str) -> str:
        if len(info) > self._settings.info_max_length:
            raise InvalidInputError(
                f"info can't be longer than {self._settings.info_max_length} characters"
            )
        return info

    def validate_amount(self, value: int, field: str) -> int:
        """Days and money must be non-negative."""
        if value < 0:
            raise InvalidInputError(f"{field} must be a non-negative number")
        return value
