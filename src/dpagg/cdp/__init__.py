"""Entry point for the Centralised Differential Privacy (CDP) package."""

from __future__ import annotations

from .mechanisms import (
    GaussianMechanism,
    LaplaceMechanism,
    NoiseKind,
    create_additive_mechanism,
)
from .aggregation import (
    AggregationError,
    BudgetExceeded,
    ConfigurationError,
    CountParams,
    DataShapeError,
    LocalBackend,
    PipelineBackend,
    PrivacySpec,
    PrivateCollection,
    SelectPartitionsParams,
    SumParams,
    count,
    make_private,
    select_partitions,
    sum_per_key,
)

__all__ = [
    "GaussianMechanism",
    "LaplaceMechanism",
    "NoiseKind",
    "create_additive_mechanism",
    "AggregationError",
    "BudgetExceeded",
    "ConfigurationError",
    "CountParams",
    "DataShapeError",
    "LocalBackend",
    "PipelineBackend",
    "PrivacySpec",
    "PrivateCollection",
    "SelectPartitionsParams",
    "SumParams",
    "count",
    "make_private",
    "select_partitions",
    "sum_per_key",
]
