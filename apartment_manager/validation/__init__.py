"""Input validation package."""

from apartment_manager.validation.validator import (
    InputValidationError,
    InputValidator,
)

__all__ = ["InputValidationError", "InputValidator"]
