"""
ART-2A clustering engine.

Presents the input vectors epoch by epoch in a seeded random order, lets the
best matching cluster absorb each input if it passes the vigilance test and
otherwise spawns a new cluster. The run converges once a full epoch leaves
every cluster assignment unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import numpy as np

from ..config import Art2aConfig
from ..logger import RunLogger
from .algorithm import (
    check_data_matrix,
    scale_data_matrix,
    normalize_data_matrix,
    random_permutation,
)
from .models import ClusterStore, ResultLog
from .result import Art2aClusteringResult


SEPARATOR = "---------------------------------------"


class ConvergenceFailedError(Exception):
    """Raised when the epoch budget is exhausted before the cluster view stabilizes."""

    def __init__(self, message: str, vigilance_parameter: float, epochs: int):
        super().__init__(message)
        self.vigilance_parameter = vigilance_parameter
        self.epochs = epochs


class ClusteringState(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    CONVERGED = "converged"
    FAILED = "failed"


class Art2aClustering:
    """
    ART-2A clustering of non-negative feature vectors.

    Usage:
        engine = Art2aClustering(fingerprints, Art2aConfig(vigilance_parameter=0.3))
        result = engine.get_cluster_result(export_results=True, seed=1)
    """

    def __init__(
        self,
        data_matrix,
        config: Optional[Art2aConfig] = None,
        run_logger: Optional[RunLogger] = None,
        **overrides,
    ):
        """
        Initialize engine.

        Args:
            data_matrix: Input vectors, one row per input (not modified)
            config: Run configuration (default: Art2aConfig())
            run_logger: Optional JSONL logger for run events
            **overrides: Config fields to override, e.g. vigilance_parameter=0.8

        Raises:
            ValueError: invalid configuration or data matrix
        """
        if config is None:
            config = Art2aConfig(**overrides)
        elif overrides:
            config = Art2aConfig.from_dict({**config.to_dict(), **overrides})
        self.config = config
        self.run_logger = run_logger

        self.data_matrix = scale_data_matrix(check_data_matrix(data_matrix, config.dtype))
        self.num_inputs, self.num_components = self.data_matrix.shape
        self._normalized, self._null_mask = normalize_data_matrix(self.data_matrix)

        self.store = ClusterStore(self.num_inputs, self.num_components, dtype=config.dtype)
        self.seed = config.seed

        self.state = ClusteringState.UNINITIALIZED
        self.epoch = 0
        self.failure_reason: Optional[str] = None

    @property
    def vigilance_parameter(self) -> float:
        return self.config.vigilance_parameter

    def initialize_matrices(self) -> None:
        """Reset cluster store and cluster view; start at epoch 0."""
        self.store.reset()
        self.state = ClusteringState.RUNNING
        self.epoch = 0
        self.failure_reason = None

    def get_randomized_vector_indices(self) -> np.ndarray:
        """Permutation of input indices for the current seed; advances the seed."""
        permutation = random_permutation(self.num_inputs, self.seed)
        self.seed += 1
        return permutation

    def _run_epoch(self, process_log: Optional[ResultLog]) -> None:
        """Present every input once in permuted order."""
        vigilance = self.config.vigilance_parameter
        if process_log is not None:
            process_log.append(f"Art-2a clustering result for vigilance parameter: {vigilance:.2f}")
            process_log.append(f"Number of epochs: {self.epoch}")
            process_log.append("")

        for position, input_index in enumerate(self.get_randomized_vector_indices()):
            if process_log is not None:
                process_log.append(f"Input: {position} / Vector {input_index}")

            if self._null_mask[input_index]:
                # Null vectors are never classified
                if process_log is not None:
                    process_log.append("This input is a null vector")
                continue

            vector = self._normalized[input_index]
            match = self.store.best_match(vector)
            if match is not None and match[1] >= vigilance:
                cluster_index = match[0]
                self.store.update_cluster(cluster_index, vector, self.config.learning_parameter)
            else:
                cluster_index = self.store.create_cluster(vector)
            self.store.assign(input_index, cluster_index)

            if process_log is not None:
                process_log.append(f"Cluster number: {cluster_index}")
                process_log.append(f"Number of detected clusters: {self.store.number_of_clusters}")

    def get_cluster_result(
        self,
        export_results: bool = False,
        seed: Optional[int] = None,
    ) -> Art2aClusteringResult:
        """
        Run the full clustering.

        Args:
            export_results: Fill process/result logs for later text export
            seed: Seed for the first epoch permutation (default: config.seed)

        Returns:
            Art2aClusteringResult of the converged run

        Raises:
            ConvergenceFailedError: cluster view did not stabilize within max_epochs
        """
        seed = self.config.seed if seed is None else seed
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}")

        process_log = ResultLog() if export_results else None
        result_log = ResultLog() if export_results else None
        vigilance = self.config.vigilance_parameter

        self.initialize_matrices()
        self.seed = seed
        if result_log is not None:
            result_log.append(f"Vigilance parameter: {vigilance:.2f}")
        if self.run_logger:
            self.run_logger.log_run_start(self.config.to_dict(), self.num_inputs, self.num_components, seed)

        previous_view = self.store.cluster_view.copy()
        while self.state is ClusteringState.RUNNING:
            self._run_epoch(process_log)
            self.epoch += 1

            reassignments = int(np.count_nonzero(self.store.cluster_view != previous_view))
            converged = reassignments == 0
            if converged:
                self.state = ClusteringState.CONVERGED
            elif self.epoch >= self.config.max_epochs:
                self.state = ClusteringState.FAILED
                self.failure_reason = (
                    f"Convergence failed for vigilance parameter: {vigilance:.2f} "
                    f"({reassignments} reassignments in epoch {self.epoch}, "
                    f"budget {self.config.max_epochs} epochs)"
                )
            previous_view = self.store.cluster_view.copy()

            if process_log is not None:
                process_log.append(f"Convergence status: {converged}")
                process_log.append(SEPARATOR)
            if self.run_logger:
                self.run_logger.log_epoch_end(
                    self.epoch - 1, self.store.number_of_clusters, reassignments, converged
                )
            if self.config.verbose:
                print(f"  Epoch {self.epoch}: {self.store.number_of_clusters} clusters, "
                      f"{reassignments} reassignments")

        if self.state is ClusteringState.FAILED:
            if self.run_logger:
                self.run_logger.log_convergence_failed(vigilance, self.epoch, self.failure_reason)
            raise ConvergenceFailedError(self.failure_reason, vigilance, self.epoch)

        num_clusters = self.store.number_of_clusters
        if result_log is not None:
            result_log.append(f"Number of epochs: {self.epoch}")
            result_log.append(f"Number of detected clusters: {num_clusters}")
            result_log.append(f"Convergence status: {True}")
            result_log.append(SEPARATOR)
        if self.run_logger:
            self.run_logger.log_run_converged(vigilance, self.epoch, num_clusters)
        if self.config.verbose:
            print(f"Converged after {self.epoch} epochs with {num_clusters} clusters "
                  f"(vigilance {vigilance:.2f})")

        return Art2aClusteringResult(
            vigilance_parameter=vigilance,
            number_of_epochs=self.epoch,
            number_of_detected_clusters=num_clusters,
            cluster_view=self.store.cluster_view.copy(),
            cluster_matrix=self.store.cluster_matrix,
            data_matrix=self.data_matrix.copy(),
            process_log=process_log,
            result_log=result_log,
            run_logger=self.run_logger,
        )
