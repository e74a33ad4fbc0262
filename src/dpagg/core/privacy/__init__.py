"""Core privacy abstractions and shared exceptions."""
from .base_mechanism import (
    BaseMechanism,
    MechanismError,
    ValidationError,
    CalibrationError,
    NotCalibratedError,
)
from .privacy_accountant import (
    PrivacyAccountant,
    PrivacyBudget,
    PrivacyEvent,
    BudgetExceededError,
)

__all__ = [
    "BaseMechanism",
    "MechanismError",
    "ValidationError",
    "CalibrationError",
    "NotCalibratedError",
    "PrivacyAccountant",
    "PrivacyBudget",
    "PrivacyEvent",
    "BudgetExceededError",
]
