"""Private aggregation pipeline: Count, Sum and partition selection."""
from .exceptions import (
    AggregationError,
    BudgetExceeded,
    BudgetExceededError,
    ConfigurationError,
    DataShapeError,
)
from .backend import LocalBackend, PipelineBackend
from .params import CountParams, SelectPartitionsParams, SumParams
from .privacy_spec import PrivacySpec, PrivateCollection, make_private
from .aggregations import count, select_partitions, sum_per_key

__all__ = [
    "AggregationError",
    "BudgetExceeded",
    "BudgetExceededError",
    "ConfigurationError",
    "DataShapeError",
    "LocalBackend",
    "PipelineBackend",
    "CountParams",
    "SelectPartitionsParams",
    "SumParams",
    "PrivacySpec",
    "PrivateCollection",
    "make_private",
    "count",
    "select_partitions",
    "sum_per_key",
]
