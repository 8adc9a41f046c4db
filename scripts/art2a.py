#!/usr/bin/env python3
"""
ART-2A CLI - Cluster fingerprint matrices from the command line.

Usage:
    python scripts/art2a.py run fingerprints.npy --vigilance 0.3 --export-dir out/
    python scripts/art2a.py run fingerprints.csv --config art2a.yaml --angles
    python scripts/art2a.py sweep fingerprints.npy --tasks 4
"""

import argparse
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from art2a.config import Art2aConfig, DEFAULT_VIGILANCE_PARAMETERS
from art2a.logger import RunLogger
from art2a.clustering import Art2aClustering, ClusteringService, ConvergenceFailedError


def load_matrix(path: Path) -> np.ndarray:
    """Load a data matrix from .npy or delimited text."""
    path = Path(path)
    if path.suffix == ".npy":
        return np.load(path)
    delimiter = "," if path.suffix == ".csv" else None
    return np.loadtxt(path, delimiter=delimiter, ndmin=2)


def build_config(args) -> Art2aConfig:
    """Config from --config file with command line overrides."""
    config_dict = Art2aConfig.from_yaml(args.config).to_dict() if args.config else {}
    overrides = {
        "vigilance_parameter": getattr(args, "vigilance", None),
        "seed": getattr(args, "seed", None),
        "max_epochs": getattr(args, "max_epochs", None),
        "learning_parameter": getattr(args, "learning_parameter", None),
        "precision": getattr(args, "precision", None),
    }
    config_dict.update({k: v for k, v in overrides.items() if v is not None})
    config_dict["verbose"] = args.verbose
    return Art2aConfig.from_dict(config_dict)


def open_run_logger(args):
    return RunLogger(Path(args.log_dir)) if args.log_dir else None


def cmd_run(args):
    """Cluster once with a single vigilance parameter."""
    config = build_config(args)
    data_matrix = load_matrix(args.matrix)
    run_logger = open_run_logger(args)

    try:
        engine = Art2aClustering(data_matrix, config, run_logger=run_logger)
        export = args.export_dir is not None
        try:
            result = engine.get_cluster_result(export_results=export, seed=config.seed)
        except ConvergenceFailedError as e:
            print(f"Error: {e}")
            return 2

        num_clusters = result.get_number_of_detected_clusters()
        print(f"Vigilance parameter: {result.get_vigilance_parameter():.2f}")
        print(f"Epochs: {result.get_number_of_epochs()}")
        print(f"Clusters: {num_clusters}")
        print()
        sizes = result.get_cluster_sizes()
        for c in range(num_clusters):
            if sizes[c]:
                print(f"  [{c}] {sizes[c]} members, representative: {result.get_cluster_representative(c)}")
            else:
                print(f"  [{c}] empty")

        if args.angles and num_clusters > 1:
            print()
            print("Angles between clusters (degrees):")
            for a in range(num_clusters):
                row = " ".join(
                    f"{result.get_angle_between_clusters(a, b):6.2f}" for b in range(num_clusters)
                )
                print(f"  [{a}] {row}")

        if export:
            export_dir = Path(args.export_dir)
            export_dir.mkdir(parents=True, exist_ok=True)
            result_path = export_dir / "clustering_result.txt"
            process_path = export_dir / "clustering_process.txt"
            with open(result_path, 'w') as result_sink, open(process_path, 'w') as process_sink:
                exported = result.export_to_text_files(result_sink, process_sink)
            if exported:
                print(f"\nExported: {result_path}, {process_path}")
    finally:
        if run_logger:
            run_logger.close()

    return 0


def cmd_sweep(args):
    """Cluster with vigilance parameters 0.1 ... 0.9."""
    config = build_config(args)
    data_matrix = load_matrix(args.matrix)
    run_logger = open_run_logger(args)

    try:
        service = ClusteringService(Path(args.settings_dir), config, run_logger=run_logger)
        vigilance_parameters = args.vigilance_values or list(DEFAULT_VIGILANCE_PARAMETERS)
        results = service.start_clustering(data_matrix, args.tasks, vigilance_parameters)
    finally:
        if run_logger:
            run_logger.close()

    print(f"{'vigilance':>10} {'epochs':>7} {'clusters':>9}")
    for vigilance, result in zip(vigilance_parameters, results):
        if result is None:
            print(f"{vigilance:>10.2f} {'-':>7} {'failed':>9}")
            continue
        print(f"{result.get_vigilance_parameter():>10.2f} "
              f"{result.get_number_of_epochs():>7} "
              f"{result.get_number_of_detected_clusters():>9}")

    if args.save_settings:
        service.persist_settings()
        print(f"\nSettings saved: {service.settings_path}")

    return 0


def main():
    parser = argparse.ArgumentParser(
        description="ART-2A - Vigilance-controlled clustering of fingerprint vectors"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Options shared by all commands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("matrix", help="Data matrix (.npy, .csv or whitespace-delimited text)")
    common.add_argument("--config", help="YAML config file")
    common.add_argument("--seed", type=int, help="Seed for the first epoch permutation")
    common.add_argument("--max-epochs", type=int, help="Epoch budget")
    common.add_argument("--learning-parameter", type=float, help="Weight update step")
    common.add_argument("--precision", choices=["float64", "float32"], help="Machine precision")
    common.add_argument("--log-dir", help="Directory for the JSONL run log")
    common.add_argument("--verbose", action="store_true", default=False)

    # run
    p_run = subparsers.add_parser("run", parents=[common], help="Cluster with one vigilance parameter")
    p_run.add_argument("--vigilance", type=float, help="Vigilance parameter in (0, 1)")
    p_run.add_argument("--export-dir", help="Write process/result text logs here")
    p_run.add_argument("--angles", action="store_true", help="Print inter-cluster angles")

    # sweep
    p_sweep = subparsers.add_parser("sweep", parents=[common], help="Cluster over several vigilance parameters")
    p_sweep.add_argument("--tasks", type=int, default=1, help="Worker threads")
    p_sweep.add_argument("--vigilance-values", type=float, nargs="*", help="Values (default: 0.1 ... 0.9)")
    p_sweep.add_argument("--settings-dir", default=".", help="Directory for persisted settings")
    p_sweep.add_argument("--save-settings", action="store_true", help="Persist settings after the sweep")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    # Dispatch
    commands = {
        "run": cmd_run,
        "sweep": cmd_sweep,
    }

    try:
        return commands[args.command](args)
    except Exception as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
