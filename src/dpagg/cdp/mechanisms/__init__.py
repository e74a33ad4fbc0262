"""Centralised differential privacy noise mechanisms."""
from .laplace import LaplaceMechanism
from .gaussian import GaussianMechanism
from .mechanism_registry import (
    MECHANISM_REGISTRY,
    NoiseKind,
    get_mechanism_class,
    normalize_noise_kind,
)
from .mechanism_factory import create_additive_mechanism

__all__ = [
    "LaplaceMechanism",
    "GaussianMechanism",
    "MECHANISM_REGISTRY",
    "NoiseKind",
    "get_mechanism_class",
    "normalize_noise_kind",
    "create_additive_mechanism",
]
