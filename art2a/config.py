"""
Configuration for ART-2A clustering runs.
"""

from dataclasses import dataclass, asdict
from pathlib import Path

import numpy as np
import yaml

__all__ = [
    "Art2aConfig",
    "PRECISIONS",
    "DEFAULT_VIGILANCE_PARAMETERS",
]

# Supported machine precisions -> numpy dtype
PRECISIONS = {
    "float64": np.float64,
    "float32": np.float32,
}

# Vigilance values used by a sweep when none are given
DEFAULT_VIGILANCE_PARAMETERS = tuple(round(0.1 * i, 1) for i in range(1, 10))


@dataclass
class Art2aConfig:
    """Configuration for a single ART-2A clustering run."""

    # Clustering
    vigilance_parameter: float = 0.5  # (0, 1): low = coarse, high = fine
    max_epochs: int = 10
    learning_parameter: float = 0.01  # Step of winner weight towards input

    # Reproducibility
    seed: int = 1

    # Numeric precision for the whole run
    precision: str = "float64"

    # Output
    verbose: bool = False

    def __post_init__(self):
        if not 0.0 < self.vigilance_parameter < 1.0:
            raise ValueError(
                f"The vigilance parameter must be greater than 0 and smaller than 1, "
                f"got {self.vigilance_parameter}"
            )
        if self.max_epochs <= 0:
            raise ValueError(f"Number of epochs must be greater than zero, got {self.max_epochs}")
        if not 0.0 <= self.learning_parameter <= 1.0:
            raise ValueError(
                f"The learning parameter must be between 0 and 1, got {self.learning_parameter}"
            )
        if self.seed < 0:
            raise ValueError(f"Seed must be non-negative, got {self.seed}")
        if self.precision not in PRECISIONS:
            raise ValueError(
                f"Unknown precision '{self.precision}', expected one of {sorted(PRECISIONS)}"
            )

    @property
    def dtype(self) -> type:
        """numpy dtype matching the configured precision."""
        return PRECISIONS[self.precision]

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Art2aConfig":
        """Create from dict, filtering out unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)

    def to_yaml(self, path: Path) -> None:
        """Write config as YAML."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)

    @classmethod
    def from_yaml(cls, path: Path) -> "Art2aConfig":
        """Load config from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)
