"""
ART-2A clustering of non-negative feature vectors.

Vigilance-controlled online clustering with seeded, reproducible epochs and
an analytics layer for representatives and inter-cluster angles.
"""

from .models import (
    ClusterStore,
    ResultLog,
    CLUSTER_UNASSIGNED,
)
from .algorithm import (
    check_data_matrix,
    scale_data_matrix,
    normalize_vector,
    normalize_data_matrix,
    random_permutation,
)
from .result import Art2aClusteringResult, ExportNotEnabledError
from .engine import Art2aClustering, ClusteringState, ConvergenceFailedError
from .service import ClusteringService

__all__ = [
    # Models
    "ClusterStore",
    "ResultLog",
    "CLUSTER_UNASSIGNED",
    # Algorithm
    "check_data_matrix",
    "scale_data_matrix",
    "normalize_vector",
    "normalize_data_matrix",
    "random_permutation",
    # Engine
    "Art2aClustering",
    "ClusteringState",
    "ConvergenceFailedError",
    # Result
    "Art2aClusteringResult",
    "ExportNotEnabledError",
    # Service
    "ClusteringService",
]
