"""
Structured logging for ART-2A clustering runs.

Single JSONL file with typed events for streaming and analysis.

Event types:
- run_start: Config, input matrix shape
- epoch_end: Cluster count and reassignments after one pass
- run_converged: Final epochs and clusters
- convergence_failed: Epoch budget exhausted
- error: Non-fatal problems (e.g. failed export)
- sweep_end: Summary of a vigilance sweep
"""

import json
import threading
from pathlib import Path
from datetime import datetime
from typing import Any, Optional


class RunLogger:
    def __init__(self, output_dir: Path, filename: str = "clustering.jsonl"):
        """
        Initialize logger for clustering runs.

        Args:
            output_dir: Directory for log files
            filename: Name of the JSONL file inside output_dir
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.output_dir / filename

        # Open file in append mode
        self.file_handle = open(self.log_file, 'a')
        self._lock = threading.Lock()  # Sweeps log from worker threads

    def _write_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Write typed event to JSONL log."""
        event = {
            "type": event_type,
            "timestamp": datetime.now().isoformat(),
            **data
        }
        with self._lock:
            self.file_handle.write(json.dumps(event) + '\n')
            self.file_handle.flush()  # Ensure streaming writes

    def log_run_start(self, config: dict[str, Any], num_inputs: int, num_components: int, seed: int) -> None:
        """
        Log start of a clustering run.

        Args:
            config: Run configuration parameters
            num_inputs: Rows in the data matrix
            num_components: Columns in the data matrix
            seed: Seed used for the first epoch permutation
        """
        self._write_event("run_start", {
            "config": config,
            "num_inputs": num_inputs,
            "num_components": num_components,
            "seed": seed,
        })

    def log_epoch_end(
        self,
        epoch: int,
        num_clusters: int,
        reassignments: int,
        converged: bool,
    ) -> None:
        """
        Log end of an epoch.

        Args:
            epoch: Zero-based epoch index
            num_clusters: Clusters in the store after the pass
            reassignments: Inputs whose cluster changed versus previous epoch
            converged: Whether the pass produced no reassignments
        """
        self._write_event("epoch_end", {
            "epoch": epoch,
            "num_clusters": num_clusters,
            "reassignments": reassignments,
            "converged": converged,
        })

    def log_run_converged(self, vigilance_parameter: float, num_epochs: int, num_clusters: int) -> None:
        self._write_event("run_converged", {
            "vigilance_parameter": vigilance_parameter,
            "num_epochs": num_epochs,
            "num_clusters": num_clusters,
        })

    def log_convergence_failed(self, vigilance_parameter: float, num_epochs: int, reason: str) -> None:
        self._write_event("convergence_failed", {
            "vigilance_parameter": vigilance_parameter,
            "num_epochs": num_epochs,
            "reason": reason,
        })

    def log_error(
        self,
        message: str,
        epoch: Optional[int] = None,
        error_type: str = "error",
    ) -> None:
        """
        Log error event.

        Args:
            message: Error description
            epoch: Epoch where error occurred (if applicable)
            error_type: Error category (error, warning)
        """
        data = {
            "message": message,
            "error_type": error_type,
        }
        if epoch is not None:
            data["epoch"] = epoch

        self._write_event("error", data)

    def log_sweep_end(self, vigilance_parameters: list[float], num_clusters: list[Optional[int]]) -> None:
        """
        Log completion of a vigilance sweep.

        Args:
            vigilance_parameters: Vigilance values in sweep order
            num_clusters: Detected clusters per value (None = did not converge)
        """
        self._write_event("sweep_end", {
            "vigilance_parameters": vigilance_parameters,
            "num_clusters": num_clusters,
        })

    def close(self) -> None:
        """Close log file."""
        if hasattr(self, 'file_handle') and self.file_handle:
            self.file_handle.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
