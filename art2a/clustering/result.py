"""
Result of a converged ART-2A clustering run.

Immutable after construction apart from two lazily filled caches
(cluster representatives and inter-cluster angles).
"""

from __future__ import annotations

import math
import threading
from typing import Optional, TextIO, TYPE_CHECKING

import numpy as np

from .models import ResultLog, CLUSTER_UNASSIGNED

if TYPE_CHECKING:
    from ..logger import RunLogger


class ExportNotEnabledError(Exception):
    """Raised when exporting a result whose run was not asked to record logs."""
    pass


class Art2aClusteringResult:
    """
    Cluster assignments, weight vectors and derived analytics of one run.

    The dtype of cluster_matrix/data_matrix is the run's precision.
    """

    def __init__(
        self,
        vigilance_parameter: float,
        number_of_epochs: int,
        number_of_detected_clusters: int,
        cluster_view: np.ndarray,
        cluster_matrix: np.ndarray,
        data_matrix: np.ndarray,
        process_log: Optional[ResultLog] = None,
        result_log: Optional[ResultLog] = None,
        run_logger: Optional[RunLogger] = None,
    ):
        if number_of_epochs <= 0:
            raise ValueError(f"number_of_epochs is invalid: {number_of_epochs}")
        if number_of_detected_clusters < 1:
            raise ValueError(f"number_of_detected_clusters is invalid: {number_of_detected_clusters}")
        if not 0.0 < vigilance_parameter < 1.0:
            raise ValueError("The vigilance parameter must be greater than 0 and smaller than 1.")
        if cluster_view is None or cluster_matrix is None or data_matrix is None:
            raise ValueError("cluster_view, cluster_matrix and data_matrix are required.")

        self._vigilance_parameter = vigilance_parameter
        self._number_of_epochs = number_of_epochs
        self._number_of_detected_clusters = number_of_detected_clusters
        self._cluster_view = np.asarray(cluster_view)
        self._cluster_matrix = np.asarray(cluster_matrix)
        self._data_matrix = np.asarray(data_matrix)
        self._process_log = process_log
        self._result_log = result_log
        self._run_logger = run_logger

        self._cluster_sizes = self._count_cluster_sizes()

        # None = not computed yet
        self._representatives: list[Optional[int]] = [None] * number_of_detected_clusters
        # Key present = computed; only pairs with a < b are stored
        self._angles: dict[tuple[int, int], float] = {}
        self._cache_lock = threading.Lock()

    def _count_cluster_sizes(self) -> dict[int, int]:
        """Members per cluster index; unassigned inputs are not counted."""
        sizes = {c: 0 for c in range(self._number_of_detected_clusters)}
        assigned = self._cluster_view[self._cluster_view != CLUSTER_UNASSIGNED]
        for cluster_index, count in zip(*np.unique(assigned, return_counts=True)):
            sizes[int(cluster_index)] = int(count)
        return sizes

    def _check_cluster_number(self, cluster_number: int) -> None:
        if not isinstance(cluster_number, (int, np.integer)):
            raise ValueError(f"Cluster number must be an integer, got {cluster_number!r}")
        if cluster_number < 0 or cluster_number >= self._number_of_detected_clusters:
            raise ValueError(
                f"The given cluster number {cluster_number} does not exist or is invalid "
                f"({self._number_of_detected_clusters} clusters detected)."
            )

    def get_vigilance_parameter(self) -> float:
        return self._vigilance_parameter

    def get_number_of_epochs(self) -> int:
        return self._number_of_epochs

    def get_number_of_detected_clusters(self) -> int:
        return self._number_of_detected_clusters

    def get_cluster_sizes(self) -> dict[int, int]:
        return dict(self._cluster_sizes)

    def get_cluster_view(self) -> np.ndarray:
        """Cluster index per input; -1 for null vectors."""
        return self._cluster_view.copy()

    def get_cluster_matrix(self) -> np.ndarray:
        return self._cluster_matrix.copy()

    def get_cluster_indices(self, cluster_number: int) -> np.ndarray:
        """
        Input indices assigned to a cluster, in ascending order.

        Raises:
            ValueError: cluster_number < 0 or >= number of detected clusters
        """
        self._check_cluster_number(cluster_number)
        if self._cluster_sizes[cluster_number] == 0:
            return np.empty(0, dtype=np.int64)
        return np.flatnonzero(self._cluster_view == cluster_number)

    def get_cluster_representative(self, cluster_number: int) -> int:
        """
        Input index of the member most similar to the cluster's weight vector.

        Similarity is the dot product of the (scaled, not normalized) input
        vector with the weight vector; the first maximum wins.

        Raises:
            ValueError: invalid cluster number, or the cluster has no members
        """
        self._check_cluster_number(cluster_number)
        with self._cache_lock:
            cached = self._representatives[cluster_number]
            if cached is not None:
                return cached

            members = self.get_cluster_indices(cluster_number)
            if len(members) == 0:
                raise ValueError(f"Cluster {cluster_number} has no members.")
            scores = self._data_matrix[members] @ self._cluster_matrix[cluster_number]
            representative = int(members[int(np.argmax(scores))])
            self._representatives[cluster_number] = representative
            return representative

    def get_angle_between_clusters(self, first_cluster: int, second_cluster: int) -> float:
        """
        Angle in degrees between two cluster weight vectors.

        Non-negative unit vectors keep the result within [0, 90].

        Raises:
            ValueError: negative or non-existent cluster number(s)
        """
        for cluster_number in (first_cluster, second_cluster):
            if not isinstance(cluster_number, (int, np.integer)):
                raise ValueError(f"Cluster number must be an integer, got {cluster_number!r}")
        if first_cluster < 0 or second_cluster < 0:
            raise ValueError("The given cluster number is negative/invalid.")
        num_clusters = self._number_of_detected_clusters
        if first_cluster == second_cluster:
            if first_cluster >= num_clusters:
                raise ValueError("The given cluster number does not exist.")
            return 0.0
        if first_cluster >= num_clusters or second_cluster >= num_clusters:
            raise ValueError("The given cluster number(s) do(es) not exist.")

        key = (min(first_cluster, second_cluster), max(first_cluster, second_cluster))
        with self._cache_lock:
            if key not in self._angles:
                product = float(np.dot(self._cluster_matrix[key[0]], self._cluster_matrix[key[1]]))
                self._angles[key] = math.degrees(math.acos(min(1.0, max(-1.0, product))))
            return self._angles[key]

    def export_to_text_files(self, result_sink: TextIO, process_sink: TextIO) -> bool:
        """
        Write result and process logs, one entry per line.

        Returns:
            True on success, False if writing failed (the failure is reported,
            the result itself stays valid).

        Raises:
            ValueError: a sink is None
            ExportNotEnabledError: the run was not asked to export results
        """
        if result_sink is None or process_sink is None:
            raise ValueError("At least one of the sinks is None.")
        if self._process_log is None or self._result_log is None:
            raise ExportNotEnabledError(
                "Clustering logs were not recorded. Run get_cluster_result with export_results=True."
            )
        try:
            self._result_log.write_to(result_sink)
            self._process_log.write_to(process_sink)
        except (OSError, ValueError) as e:
            # ValueError: sink already closed
            print(f"Warning: Export to text files failed: {e}")
            if self._run_logger:
                self._run_logger.log_error(f"Export to text files failed: {e}", error_type="warning")
            return False
        return True
