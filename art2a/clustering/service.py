"""
Clustering service: vigilance sweeps and settings persistence.

Runs one ART-2A clustering per vigilance parameter in a thread pool and keeps
the run settings in a YAML file.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence

import yaml

from ..config import Art2aConfig, DEFAULT_VIGILANCE_PARAMETERS
from ..logger import RunLogger
from .engine import Art2aClustering, ConvergenceFailedError
from .result import Art2aClusteringResult


class ClusteringService:
    """
    Manages ART-2A settings and multi-vigilance clustering.

    Storage format:
        settings_dir/
        └── Art2aClusteringSettings.yaml   # Art2aConfig fields
    """

    SETTINGS_FILENAME = "Art2aClusteringSettings.yaml"
    CLUSTERING_ALGORITHM_NAME = "ART 2-A Clustering"

    def __init__(
        self,
        settings_dir: Path,
        config: Optional[Art2aConfig] = None,
        run_logger: Optional[RunLogger] = None,
    ):
        self.settings_dir = Path(settings_dir)
        self._settings_path = self.settings_dir / self.SETTINGS_FILENAME
        self.config = config or Art2aConfig()
        self.run_logger = run_logger

    @property
    def settings_path(self) -> Path:
        return self._settings_path

    def restore_default_settings(self) -> None:
        self.config = Art2aConfig()

    def persist_settings(self) -> None:
        """Save current settings to disk."""
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        with open(self._settings_path, 'w') as f:
            yaml.safe_dump(self.config.to_dict(), f, sort_keys=False)

    def reload_settings(self) -> bool:
        """
        Load settings from disk.

        Missing, unreadable or invalid settings leave the current config
        untouched.

        Returns:
            True if settings were loaded
        """
        if not self._settings_path.exists():
            print(f"Warning: No persisted settings at {self._settings_path}")
            return False
        try:
            with open(self._settings_path) as f:
                data = yaml.safe_load(f) or {}
            self.config = Art2aConfig.from_dict(data)
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            print(f"Warning: Unable to reload clustering settings: {e}")
            if self.run_logger:
                self.run_logger.log_error(f"Unable to reload clustering settings: {e}", error_type="warning")
            return False
        return True

    def _cluster_once(self, data_matrix, vigilance_parameter: float) -> Optional[Art2aClusteringResult]:
        engine = Art2aClustering(
            data_matrix,
            self.config,
            run_logger=self.run_logger,
            vigilance_parameter=vigilance_parameter,
        )
        try:
            return engine.get_cluster_result(export_results=False, seed=self.config.seed)
        except ConvergenceFailedError as e:
            print(f"Warning: {e}")
            return None

    def start_clustering(
        self,
        data_matrix,
        number_of_tasks: int = 1,
        vigilance_parameters: Optional[Sequence[float]] = None,
    ) -> list[Optional[Art2aClusteringResult]]:
        """
        Cluster the same data once per vigilance parameter.

        Args:
            data_matrix: Input vectors, one row per input
            number_of_tasks: Worker threads
            vigilance_parameters: Values to run (default: 0.1 ... 0.9)

        Returns:
            Results in the order of vigilance_parameters; None where the run
            did not converge
        """
        if number_of_tasks < 1:
            raise ValueError(f"number_of_tasks must be at least 1, got {number_of_tasks}")
        if vigilance_parameters is None:
            vigilance_parameters = DEFAULT_VIGILANCE_PARAMETERS
        vigilance_parameters = list(vigilance_parameters)

        # Fail fast on invalid settings before any worker starts
        for vigilance in vigilance_parameters:
            Art2aConfig.from_dict({**self.config.to_dict(), "vigilance_parameter": vigilance})

        with ThreadPoolExecutor(max_workers=number_of_tasks) as executor:
            futures = [
                executor.submit(self._cluster_once, data_matrix, vigilance)
                for vigilance in vigilance_parameters
            ]
            results = [future.result() for future in futures]

        if self.run_logger:
            self.run_logger.log_sweep_end(
                vigilance_parameters,
                [r.get_number_of_detected_clusters() if r else None for r in results],
            )
        if self.config.verbose:
            converged = sum(1 for r in results if r is not None)
            print(f"Clustering \"{self.CLUSTERING_ALGORITHM_NAME}\" of {len(data_matrix)} inputs complete "
                  f"({converged}/{len(results)} runs converged)")

        return results
