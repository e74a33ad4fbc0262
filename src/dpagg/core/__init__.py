"""Privacy primitives (mechanism base, budget accountant) and runtime utilities."""

from __future__ import annotations

from .privacy import BaseMechanism, BudgetExceededError, MechanismError, PrivacyAccountant, PrivacyBudget
from .utils import ParamValidationError, configure, get_config, get_logger

__all__ = [
    "BaseMechanism",
    "BudgetExceededError",
    "MechanismError",
    "PrivacyAccountant",
    "PrivacyBudget",
    "ParamValidationError",
    "configure",
    "get_config",
    "get_logger",
]
