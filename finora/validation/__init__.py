"""Input validation package."""

from finora.validation.validator import InputValidationError, InputValidator

__all__ = ["InputValidationError", "InputValidator"]
