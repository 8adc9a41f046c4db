"""
Data models for ART-2A clustering.

Defines the cluster weight arena, the cluster view and the ordered text logs.
"""

from __future__ import annotations

from typing import Iterator, Optional, TextIO

import numpy as np


# Cluster view entry for inputs that are not classified (null vectors)
CLUSTER_UNASSIGNED = -1


class ClusterStore:
    """
    Weight vectors of all clusters plus the input -> cluster assignments.

    Clusters are addressed by integer index only. The arena grows by doubling
    its capacity, so indices stay stable for the whole run.
    """

    def __init__(self, num_inputs: int, num_components: int, dtype=np.float64):
        self.num_inputs = num_inputs
        self.num_components = num_components
        self.dtype = dtype

        self._weights = np.empty((0, num_components), dtype=dtype)
        self._size = 0
        self.cluster_view = np.full(num_inputs, CLUSTER_UNASSIGNED, dtype=np.int64)

    @property
    def number_of_clusters(self) -> int:
        return self._size

    @property
    def cluster_matrix(self) -> np.ndarray:
        """Copy of the used weight rows (one per cluster)."""
        return self._weights[:self._size].copy()

    def reset(self) -> None:
        """Drop all clusters and mark every input unassigned."""
        self._weights = np.empty((max(1, self.num_inputs), self.num_components), dtype=self.dtype)
        self._size = 0
        self.cluster_view.fill(CLUSTER_UNASSIGNED)

    def create_cluster(self, vector: np.ndarray) -> int:
        """Append a copy of a normalized vector as a new cluster; return its index."""
        if self._size == len(self._weights):
            grown = np.empty((max(1, 2 * len(self._weights)), self.num_components), dtype=self.dtype)
            grown[:self._size] = self._weights[:self._size]
            self._weights = grown

        self._weights[self._size] = vector
        self._size += 1
        return self._size - 1

    def update_cluster(self, cluster_index: int, vector: np.ndarray, learning_parameter: float) -> None:
        """Move a weight vector towards a normalized input and re-normalize it."""
        adapted = learning_parameter * vector + (1.0 - learning_parameter) * self._weights[cluster_index]
        self._weights[cluster_index] = adapted / np.linalg.norm(adapted)

    def assign(self, input_index: int, cluster_index: int) -> None:
        self.cluster_view[input_index] = cluster_index

    def weight_vector(self, cluster_index: int) -> np.ndarray:
        return self._weights[cluster_index]

    def best_match(self, vector: np.ndarray) -> Optional[tuple[int, float]]:
        """
        Find the cluster whose weight vector is most similar to a normalized input.

        Returns:
            (cluster_index, similarity), or None if no cluster exists yet.
            On ties the lowest cluster index wins.
        """
        if self._size == 0:
            return None

        similarities = self._weights[:self._size] @ vector
        winner = int(np.argmax(similarities))
        return winner, float(similarities[winner])


class ResultLog:
    """Append-only ordered sequence of human-readable log lines."""

    def __init__(self):
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        self._lines.append(line)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def write_to(self, sink: TextIO) -> None:
        """Write every entry as one line."""
        for line in self._lines:
            sink.write(line + "\n")

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
