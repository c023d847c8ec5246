"""
Form Input Validation

DESIGN DECISION: Raw form values are checked once, at the boundary,
before anything reaches a repository. Repositories and metrics trust
their inputs; models enforce the structural invariants as a backstop.

Every failure raises InputValidationError naming the offending field,
so the view can show the message next to the right input.

IMPORTANT: Validation NEVER silently fixes issues (no clamping a
negative amount to zero, no guessing a category).
"""

import math
import re
from datetime import date
from typing import Optional, Union

from finora.config import get_settings
from finora.models.entities import TransactionType, categories_for
from finora.services.security import BCRYPT_MAX_BYTES


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

NumberInput = Union[str, int, float, None]


class InputValidationError(ValueError):
    """A form value was rejected."""
    
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


class InputValidator:
    """
    Parses and checks raw form values.
    """
    
    def __init__(self):
        self._security = get_settings().security
    
    def _parse_number(self, raw: NumberInput, field: str) -> float:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raise InputValidationError(field, f"{field.replace('_', ' ').capitalize()} is required")
        if isinstance(raw, bool):
            raise InputValidationError(field, "Invalid amount")
        try:
            value = float(raw.strip() if isinstance(raw, str) else raw)
        except (TypeError, ValueError):
            raise InputValidationError(field, "Invalid amount")
        if not math.isfinite(value):
            raise InputValidationError(field, "Invalid amount")
        return value
    
    def parse_amount(
        self,
        raw: NumberInput,
        field: str = "amount",
        allow_zero: bool = False,
    ) -> float:
        """
        Parse a money amount.
        
        Raises:
            InputValidationError: If not a finite number, negative, or
                                  zero when allow_zero is False
        """
        value = self._parse_number(raw, field)
        if value < 0 or (value == 0 and not allow_zero):
            raise InputValidationError(field, "Amount must be greater than zero")
        return value
    
    def parse_interest_rate(self, raw: NumberInput, field: str = "interest_rate") -> float:
        value = self._parse_number(raw, field)
        if value < 0:
            raise InputValidationError(field, "Interest rate cannot be negative")
        return value
    
    def parse_months(self, raw: NumberInput, field: str = "tenure_months") -> int:
        value = self._parse_number(raw, field)
        if value != int(value) or value < 1:
            raise InputValidationError(field, "Tenure must be a whole number of months")
        return int(value)
    
    def parse_date(self, raw: Union[str, date, None], field: str = "date") -> date:
        if isinstance(raw, date):
            return raw
        if not raw or not str(raw).strip():
            raise InputValidationError(field, "Date is required")
        try:
            return date.fromisoformat(str(raw).strip())
        except ValueError:
            raise InputValidationError(field, f"Invalid date: {raw}")
    
    def parse_optional_date(self, raw: Union[str, date, None], field: str) -> Optional[date]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        return self.parse_date(raw, field)
    
    def require_text(self, raw: Optional[str], field: str, max_length: int = 120) -> str:
        value = (raw or "").strip()
        if not value:
            raise InputValidationError(field, f"{field.replace('_', ' ').capitalize()} is required")
        if len(value) > max_length:
            raise InputValidationError(field, f"Must be at most {max_length} characters")
        return value
    
    def validate_email(self, raw: Optional[str]) -> str:
        value = (raw or "").strip()
        if not EMAIL_PATTERN.match(value):
            raise InputValidationError("email", "Enter a valid email address")
        return value
    
    def validate_new_password(
        self,
        password: str,
        confirmation: Optional[str] = None,
        field: str = "password",
    ) -> str:
        """
        Check a password being set.
        
        Raises:
            InputValidationError: On a confirmation mismatch, or a password
                                  too short or too long for bcrypt
        """
        if confirmation is not None and password != confirmation:
            raise InputValidationError("confirm_password", "Passwords don't match")
        if len(password) < self._security.min_password_length:
            raise InputValidationError(
                field,
                f"Password must be at least {self._security.min_password_length} characters",
            )
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise InputValidationError(field, f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return password
    
    def validate_category(self, transaction_type: TransactionType, category: Optional[str]) -> str:
        allowed = categories_for(transaction_type)
        if category not in allowed:
            raise InputValidationError("category", f"Choose one of: {', '.join(allowed)}")
        return category
