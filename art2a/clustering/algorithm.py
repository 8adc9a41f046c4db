"""
Numeric building blocks for ART-2A clustering.

Input checking and scaling, unit-length normalization and the seeded
per-epoch permutation of input indices.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from sklearn.preprocessing import normalize


def check_data_matrix(data_matrix, dtype=np.float64) -> np.ndarray:
    """
    Validate input vectors and return them as a fresh 2-D array of dtype.

    Raises:
        ValueError: empty or ragged matrix, negative components, or every
            row a null vector.
    """
    try:
        matrix = np.array(data_matrix, dtype=dtype)
    except ValueError as e:
        raise ValueError(f"The input vectors must have the same length: {e}") from e

    if matrix.ndim != 2:
        raise ValueError(f"Data matrix must be 2-dimensional, got {matrix.ndim} dimension(s)")
    if matrix.shape[0] == 0:
        raise ValueError("The number of vectors must be greater than 0 to cluster inputs.")
    if matrix.shape[1] == 0:
        raise ValueError("The input vectors must have at least one component.")
    if not np.all(np.isfinite(matrix)):
        raise ValueError("Data matrix contains NaN or infinite values.")
    if np.any(matrix < 0.0):
        raise ValueError("Only non-negative values allowed.")
    if not np.any(matrix):
        raise ValueError("All vectors are null vectors. Clustering not possible.")

    return matrix


def scale_data_matrix(matrix: np.ndarray) -> np.ndarray:
    """
    Min-max scale a matrix to [0, 1] if any component exceeds 1.

    Count fingerprints are brought into the range of bit fingerprints.
    Matrices already inside [0, 1] are returned unchanged.

    The global minimum maps to 0, so a row made only of that value becomes
    a null vector and is left unclassified, e.g. [[2, 2], [3, 3]] scales to
    [[0, 0], [1, 1]].
    """
    max_value = matrix.max()
    min_value = matrix.min()
    if max_value <= 1.0 or max_value == min_value:
        return matrix
    return (matrix - min_value) / (max_value - min_value)


def is_null_vector(vector: np.ndarray) -> bool:
    return not np.any(vector)


def normalize_vector(vector: np.ndarray) -> Optional[np.ndarray]:
    """Return a unit-length copy of vector, or None for a null vector."""
    if is_null_vector(vector):
        return None
    return vector / np.linalg.norm(vector)


def normalize_data_matrix(matrix: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Normalize every row to unit length.

    Returns:
        (normalized, null_mask): null rows stay all-zero in normalized and
        are flagged True in null_mask.
    """
    null_mask = ~np.any(matrix, axis=1)
    normalized = normalize(matrix, norm='l2', axis=1, copy=True).astype(matrix.dtype, copy=False)
    return normalized, null_mask


def random_permutation(n: int, seed: int) -> np.ndarray:
    """
    Fisher-Yates shuffle of 0..n-1.

    The same (n, seed) always yields the same permutation.
    """
    rng = np.random.default_rng(seed)
    indices = np.arange(n)
    for i in range(n - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        indices[i], indices[j] = indices[j], indices[i]
    return indices
