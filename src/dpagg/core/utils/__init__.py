"""Shared utility helpers used across the core library."""

from .random import (
    create_rng,
    derive_rng,
    split_rng,
    sample_noise,
    stable_digest,
    stable_encoding,
)
from .config import (
    RuntimeConfig,
    get_config,
    configure,
)
from .logging import (
    PrivacyFilter,
    get_logger,
    configure_logging,
)
from .param_validation import (
    ensure,
    ensure_finite,
    ensure_type,
    ParamValidationError,
)

__all__ = [
    "create_rng",
    "derive_rng",
    "split_rng",
    "sample_noise",
    "stable_digest",
    "stable_encoding",
    "RuntimeConfig",
    "get_config",
    "configure",
    "PrivacyFilter",
    "get_logger",
    "configure_logging",
    "ensure",
    "ensure_finite",
    "ensure_type",
    "ParamValidationError",
]
