"""
Test Art2aClusteringResult analytics, caches and export.
"""

import io
import json
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np
import pytest

from art2a.logger import RunLogger
from art2a.clustering import (
    Art2aClustering,
    Art2aClusteringResult,
    ExportNotEnabledError,
    ResultLog,
)


SQRT_HALF = np.sqrt(0.5)


def make_result(**overrides) -> Art2aClusteringResult:
    """
    Three clusters in 2-D: x axis, y axis and the diagonal.

    Inputs 0, 1 -> cluster 0; 2, 4 -> cluster 1; 3 is a null vector;
    5 -> cluster 2.
    """
    kwargs = dict(
        vigilance_parameter=0.5,
        number_of_epochs=2,
        number_of_detected_clusters=3,
        cluster_view=np.array([0, 0, 1, -1, 1, 2]),
        cluster_matrix=np.array([
            [1.0, 0.0],
            [0.0, 1.0],
            [SQRT_HALF, SQRT_HALF],
        ]),
        data_matrix=np.array([
            [0.8, 0.0],
            [0.9, 0.1],
            [0.2, 0.5],
            [0.0, 0.0],
            [0.1, 0.9],
            [0.5, 0.5],
        ]),
    )
    kwargs.update(overrides)
    return Art2aClusteringResult(**kwargs)


def make_logs() -> tuple[ResultLog, ResultLog]:
    process_log, result_log = ResultLog(), ResultLog()
    for line in ["Input: 0 / Vector 2", "Cluster number: 0"]:
        process_log.append(line)
    for line in ["Vigilance parameter: 0.50", "Number of epochs: 2"]:
        result_log.append(line)
    return process_log, result_log


def test_accessors():
    result = make_result()

    assert result.get_vigilance_parameter() == 0.5
    assert result.get_number_of_epochs() == 2
    assert result.get_number_of_detected_clusters() == 3
    assert result.get_cluster_sizes() == {0: 2, 1: 2, 2: 1}


def test_cluster_indices():
    print("Testing get_cluster_indices...")

    result = make_result()
    assert result.get_cluster_indices(0).tolist() == [0, 1]
    assert result.get_cluster_indices(1).tolist() == [2, 4]
    assert result.get_cluster_indices(2).tolist() == [5]
    print("  ✓ Members in ascending input order")

    for invalid in (3, 10, -1):
        with pytest.raises(ValueError):
            result.get_cluster_indices(invalid)
    print("  ✓ Out-of-range cluster numbers rejected")


def test_cluster_representatives():
    result = make_result()

    assert result.get_cluster_representative(0) == 1
    assert result.get_cluster_representative(1) == 4
    assert result.get_cluster_representative(2) == 5

    for c in range(3):
        assert result.get_cluster_representative(c) in result.get_cluster_indices(c).tolist()

    with pytest.raises(ValueError):
        result.get_cluster_representative(3)
    with pytest.raises(ValueError):
        result.get_cluster_representative(-1)


def test_representative_tie_prefers_first_member():
    data = np.array([
        [0.5, 0.5],
        [0.5, 0.5],
        [0.5, 0.5],
    ])
    result = make_result(
        number_of_detected_clusters=1,
        cluster_view=np.array([0, 0, 0]),
        cluster_matrix=np.array([[SQRT_HALF, SQRT_HALF]]),
        data_matrix=data,
    )
    assert result.get_cluster_representative(0) == 0


def test_representative_is_memoized():
    """Once computed, later changes to the data are not seen."""
    data = np.array([[0.8, 0.0], [0.9, 0.1], [0.2, 0.5], [0.0, 0.0], [0.1, 0.9], [0.5, 0.5]])
    result = make_result(data_matrix=data)

    assert result.get_cluster_representative(0) == 1
    data[0] = [5.0, 0.0]
    assert result.get_cluster_representative(0) == 1


def test_representative_of_empty_cluster():
    result = make_result(
        number_of_detected_clusters=2,
        cluster_view=np.array([0, 0]),
        cluster_matrix=np.array([[1.0, 0.0], [0.0, 1.0]]),
        data_matrix=np.array([[1.0, 0.0], [0.9, 0.1]]),
    )
    assert result.get_cluster_sizes() == {0: 2, 1: 0}
    assert result.get_cluster_indices(1).tolist() == []
    with pytest.raises(ValueError):
        result.get_cluster_representative(1)


def test_angles():
    print("Testing get_angle_between_clusters...")

    result = make_result()
    assert np.isclose(result.get_angle_between_clusters(0, 1), 90.0)
    assert np.isclose(result.get_angle_between_clusters(0, 2), 45.0)
    assert np.isclose(result.get_angle_between_clusters(2, 1), 45.0)
    print("  ✓ 90 and 45 degree angles")

    for c in range(3):
        assert result.get_angle_between_clusters(c, c) == 0.0
    print("  ✓ Angle of a cluster with itself is 0")

    for a in range(3):
        for b in range(3):
            angle = result.get_angle_between_clusters(a, b)
            assert angle == result.get_angle_between_clusters(b, a)
            assert 0.0 <= angle <= 90.0
    print("  ✓ Symmetric and within [0, 90]")


def test_angle_argument_validation():
    result = make_result()

    with pytest.raises(ValueError):
        result.get_angle_between_clusters(-1, 0)
    with pytest.raises(ValueError):
        result.get_angle_between_clusters(0, -1)
    with pytest.raises(ValueError):
        result.get_angle_between_clusters(3, 3)
    with pytest.raises(ValueError):
        result.get_angle_between_clusters(0, 3)
    with pytest.raises(ValueError):
        result.get_angle_between_clusters(5, 1)


def test_angle_cache_distinguishes_zero_from_unset():
    """Identical weight vectors give a cached 0 degree angle."""
    matrix = np.array([[1.0, 0.0], [1.0, 0.0]])
    result = make_result(
        number_of_detected_clusters=2,
        cluster_view=np.array([0, 1]),
        cluster_matrix=matrix,
        data_matrix=np.array([[1.0, 0.0], [1.0, 0.0]]),
    )

    assert result.get_angle_between_clusters(0, 1) == 0.0
    matrix[1] = [0.0, 1.0]
    assert result.get_angle_between_clusters(1, 0) == 0.0, "Cached zero must be reused"


def test_angle_clips_rounding_above_one():
    almost = np.array([[1.0, 0.0], [1.0 + 1e-15, 0.0]])
    result = make_result(
        number_of_detected_clusters=2,
        cluster_view=np.array([0, 1]),
        cluster_matrix=almost,
        data_matrix=np.array([[1.0, 0.0], [1.0, 0.0]]),
    )
    angle = result.get_angle_between_clusters(0, 1)
    assert not np.isnan(angle)
    assert angle == 0.0


def test_concurrent_queries_agree():
    rng = np.random.default_rng(3)
    data = rng.uniform(0.0, 1.0, size=(40, 6))
    result = Art2aClustering(data, vigilance_parameter=0.9, max_epochs=100).get_cluster_result(seed=1)
    n = result.get_number_of_detected_clusters()
    pairs = [(a, b) for a in range(n) for b in range(n)] * 4
    occupied = [c for c, size in result.get_cluster_sizes().items() if size]

    with ThreadPoolExecutor(max_workers=8) as executor:
        angles = list(executor.map(lambda p: result.get_angle_between_clusters(*p), pairs))
        representatives = list(executor.map(result.get_cluster_representative, occupied * 4))

    for (a, b), angle in zip(pairs, angles):
        assert angle == result.get_angle_between_clusters(a, b)
    for c, representative in zip(occupied * 4, representatives):
        assert representative == result.get_cluster_representative(c)


def test_non_integer_cluster_numbers_rejected():
    result = make_result()

    with pytest.raises(ValueError):
        result.get_cluster_indices(1.5)
    with pytest.raises(ValueError):
        result.get_cluster_representative(1.0)
    with pytest.raises(ValueError):
        result.get_angle_between_clusters(0, 1.5)
    with pytest.raises(ValueError):
        result.get_angle_between_clusters(0.5, 1)

    assert result.get_cluster_indices(np.int64(0)).tolist() == [0, 1]


def test_invalid_construction():
    with pytest.raises(ValueError):
        make_result(number_of_epochs=0)
    with pytest.raises(ValueError):
        make_result(number_of_detected_clusters=0)
    with pytest.raises(ValueError):
        make_result(vigilance_parameter=1.0)
    with pytest.raises(ValueError):
        make_result(cluster_matrix=None)


def test_export_to_text_files():
    print("Testing export_to_text_files...")

    process_log, result_log = make_logs()
    result = make_result(process_log=process_log, result_log=result_log)

    result_sink, process_sink = io.StringIO(), io.StringIO()
    assert result.export_to_text_files(result_sink, process_sink) is True
    assert result_sink.getvalue() == "Vigilance parameter: 0.50\nNumber of epochs: 2\n"
    assert process_sink.getvalue() == "Input: 0 / Vector 2\nCluster number: 0\n"
    print("  ✓ One line per log entry")


def test_export_argument_errors():
    process_log, result_log = make_logs()
    result = make_result(process_log=process_log, result_log=result_log)

    with pytest.raises(ValueError):
        result.export_to_text_files(None, io.StringIO())
    with pytest.raises(ValueError):
        result.export_to_text_files(io.StringIO(), None)

    without_logs = make_result()
    with pytest.raises(ExportNotEnabledError):
        without_logs.export_to_text_files(io.StringIO(), io.StringIO())


class FailingSink:
    def write(self, text):
        raise OSError("disk full")


def test_export_io_failure_is_reported():
    """Write errors are reported, the result stays usable."""
    process_log, result_log = make_logs()

    with tempfile.TemporaryDirectory() as tmpdir:
        with RunLogger(Path(tmpdir)) as run_logger:
            result = make_result(process_log=process_log, result_log=result_log, run_logger=run_logger)
            assert result.export_to_text_files(FailingSink(), io.StringIO()) is False

        with open(Path(tmpdir) / "clustering.jsonl") as f:
            events = [json.loads(line) for line in f]

    assert events[-1]["type"] == "error"
    assert "disk full" in events[-1]["message"]
    assert result.get_cluster_indices(0).tolist() == [0, 1]



def test_export_to_closed_sink_is_reported():
    """A closed sink makes the export fail without raising."""
    data = [[1.0, 0.0], [0.9, 0.1], [0.0, 1.0]]
    result = Art2aClustering(data, vigilance_parameter=0.8).get_cluster_result(export_results=True)

    closed = io.StringIO()
    closed.close()
    assert result.export_to_text_files(closed, io.StringIO()) is False
    assert result.export_to_text_files(io.StringIO(), closed) is False
    print("  ✓ Closed sink reported, not raised")

    result_sink, process_sink = io.StringIO(), io.StringIO()
    assert result.export_to_text_files(result_sink, process_sink) is True
    assert result_sink.getvalue().startswith("Vigilance parameter: 0.80")

if __name__ == "__main__":
    test_accessors()
    test_cluster_indices()
    test_cluster_representatives()
    test_representative_tie_prefers_first_member()
    test_representative_is_memoized()
    test_representative_of_empty_cluster()
    test_angles()
    test_angle_argument_validation()
    test_angle_cache_distinguishes_zero_from_unset()
    test_angle_clips_rounding_above_one()
    test_concurrent_queries_agree()
    test_invalid_construction()
    test_export_to_text_files()
    test_export_argument_errors()
    test_export_io_failure_is_reported()
    test_non_integer_cluster_numbers_rejected()
    test_export_to_closed_sink_is_reported()
    print("\n✅ All result tests passed!")
