"""
ART-2A - Adaptive Resonance Theory clustering for fingerprint vectors.
"""

from .config import Art2aConfig
from .logger import RunLogger
from .clustering import Art2aClustering, Art2aClusteringResult, ClusteringService, ConvergenceFailedError

__all__ = [
    "Art2aConfig",
    "RunLogger",
    "Art2aClustering",
    "Art2aClusteringResult",
    "ClusteringService",
    "ConvergenceFailedError",
]
