#!/usr/bin/env python3
"""
Benchmark driver for the MFUPSI protocol.

Runs setup, update and query phases for one or more parameter presets,
prints a timing and communication report and appends one CSV row per
configuration.

Usage:
    python3 demo.py                          # Test preset
    python3 demo.py --preset test default    # Several presets in a row
    python3 demo.py --preset tiny --seed 7   # Reproducible tiny run
    python3 demo.py --clients 5 --size 2048  # Override preset fields
"""

import argparse
import logging
import os
import time
from dataclasses import replace

import pandas as pd

from mfupsi import MFUPSIProtocol, Params, PhaseMetrics
from mfupsi.pir import CompressedCostModel, DenseCostModel


PRESETS = {
    "tiny": Params.tiny,
    "test": Params.test,
    "default": Params.default,
    "performance": Params.performance,
}

CSV_COLUMNS = [
    "n",
    "dataset_size",
    "d_1",
    "b",
    "epsilon",
    "w",
    "z",
    "N_lwe",
    "q",
    "setup_client_time_ms",
    "setup_server_time_ms",
    "setup_comm_MB",
    "update_client_time_ms",
    "update_server_time_ms",
    "update_comm_MB",
    "query_client_gen_ms",
    "query_server_ms",
    "query_decrypt_ms",
    "query_comm_KB",
]


# =============================================================================
# Formatting Utilities
# =============================================================================


def format_count(n: int) -> str:
    """Format number with K/M suffix."""
    if n >= 1_000_000:
        return f"{n/1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n/1_000:.1f}K"
    return str(n)


def format_bytes(n: int) -> str:
    """Format bytes with KiB/MiB/GiB suffix."""
    if n >= 1024 * 1024 * 1024:
        return f"{n / (1024**3):.2f} GiB"
    if n >= 1024 * 1024:
        return f"{n / (1024**2):.2f} MiB"
    if n >= 1024:
        return f"{n / 1024:.2f} KiB"
    return f"{n} B"


def format_time(ms: float) -> str:
    """Format milliseconds with appropriate unit."""
    if ms >= 1000:
        return f"{ms / 1000:.2f}s"
    if ms >= 1:
        return f"{ms:.2f}ms"
    return f"{ms * 1000:.1f}us"


# =============================================================================
# Experiment
# =============================================================================


def build_params(args: argparse.Namespace, preset: str) -> Params:
    """Preset parameters with command-line overrides applied."""
    params = PRESETS[preset]()
    overrides = {
        "num_clients": args.clients,
        "dataset_size": args.size,
        "partition_size": args.d1,
        "band_width": args.band_width,
        "pir_dimension": args.z,
        "num_updates": args.updates,
        "num_queries": args.queries,
        "expansion_factor": args.epsilon,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.strict:
        overrides["strict_solver"] = True
    if not overrides:
        return params
    # Derived fields are recomputed from the overridden ones
    return replace(params, fold_edge=None, **overrides)


def result_row(params: Params, metrics: PhaseMetrics) -> dict:
    """One CSV row; times are phase totals, as in the printed report."""
    return {
        "n": params.num_clients,
        "dataset_size": params.dataset_size,
        "d_1": params.partition_size,
        "b": params.num_partitions,
        "epsilon": params.expansion_factor,
        "w": params.band_width,
        "z": params.pir_dimension,
        "N_lwe": params.representation_width,
        "q": params.modulus,
        "setup_client_time_ms": metrics.setup_client_ms,
        "setup_server_time_ms": metrics.setup_server_ms,
        "setup_comm_MB": metrics.setup_comm_bytes / (1024 * 1024),
        "update_client_time_ms": metrics.update_client_ms,
        "update_server_time_ms": metrics.update_server_ms,
        "update_comm_MB": metrics.update_comm_bytes / (1024 * 1024),
        "query_client_gen_ms": metrics.query_client_gen_ms,
        "query_server_ms": metrics.query_server_ms,
        "query_decrypt_ms": metrics.query_decrypt_ms,
        "query_comm_KB": metrics.query_bytes / 1024,
    }


def append_results(path: str, rows: list[dict]) -> None:
    """Append rows to path, writing the header only for a new file."""
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    exists = os.path.exists(path)
    df.to_csv(path, mode="a" if exists else "w", header=not exists, index=False)


def run_experiment(params: Params, args: argparse.Namespace) -> PhaseMetrics:
    """Run all three phases for one configuration and print the report."""
    print("=" * 70)
    print("MFUPSI - Multi-party Fully Updatable PSI Benchmark")
    print("=" * 70)

    print(f"\n{'Parameters':─^70}")
    print(f"  Parties (n):        {params.num_clients:>12}")
    print(f"  Set size:           {format_count(params.dataset_size):>12}")
    print(f"  Partition size (d1):{params.partition_size:>12}")
    print(f"  Partitions (b):     {format_count(params.num_partitions):>12}")
    print(f"  Expansion (eps):    {params.expansion_factor:>12}")
    print(f"  Band width (w):     {params.band_width:>12}")
    print(f"  PIR dimension (z):  {params.pir_dimension:>12}  (edge L = {params.fold_edge})")
    print(f"  LWE dimension:      {params.representation_width:>12}")
    print(f"  Modulus (q):        {params.modulus:>12}")

    if args.compressed:
        cost_model = CompressedCostModel(params.representation_width, params.word_bytes)
    else:
        cost_model = DenseCostModel(params.representation_width, params.word_bytes)
    protocol = MFUPSIProtocol(params, cost_model=cost_model, seed=args.seed, workers=args.workers)
    protocol.generate_keys()

    print(f"\n{'Setup Phase':─^70}")
    setup = protocol.setup_phase()
    print(f"  Client encoding:    {format_time(setup.setup_client_ms):>12}")
    print(f"  Server aggregation: {format_time(setup.setup_server_ms):>12}")
    print(f"  Upload:             {format_bytes(setup.setup_comm_bytes):>12}")

    num_update_parties = min(args.update_parties, params.num_clients)
    print(f"\n{'Update Phase (' + str(num_update_parties) + ' parties)':─^70}")
    update = protocol.update_phase(num_update_parties)
    print(f"  Client re-encoding: {format_time(update.update_client_ms):>12}")
    print(f"  Server merge:       {format_time(update.update_server_ms):>12}")
    print(f"  Deltas:             {format_bytes(update.update_comm_bytes):>12}  (touched columns)")

    print(f"\n{'Query Phase (' + str(params.num_queries) + ' queries)':─^70}")
    query = protocol.query_phase()
    print(f"  Client query gen:   {format_time(query.query_client_gen_ms):>12}")
    print(f"  Server fold:        {format_time(query.query_server_ms):>12}")
    print(f"  Client decode:      {format_time(query.query_decrypt_ms):>12}")
    print(f"  Query bytes:        {format_bytes(query.query_bytes):>12}  (cost model)")
    print(f"  Response bytes:     {format_bytes(query.response_bytes):>12}  (cost model)")
    print(f"  Compute units:      {format_count(query.query_compute_units):>12}")
    print(f"  Hits:               {query.hits:>6} / {query.expected_hits:<5}")
    print(f"  False positives:    {query.false_positives:>12}")

    metrics = protocol.get_metrics()
    setup_total = metrics.setup_client_ms + metrics.setup_server_ms
    update_total = metrics.update_client_ms + metrics.update_server_ms
    query_total = metrics.query_client_gen_ms + metrics.query_server_ms + metrics.query_decrypt_ms

    print(f"\n{'Summary':─^70}")
    print(f"  Setup:   {format_time(setup_total)}, {format_bytes(metrics.setup_comm_bytes)} uploaded")
    print(f"  Update:  {format_time(update_total)}, {format_bytes(metrics.update_comm_bytes)} sent")
    print(f"  Query:   {format_time(query_total)}, {format_bytes(metrics.query_comm_bytes)} communication")
    print("=" * 70)
    return metrics


# =============================================================================
# Main
# =============================================================================


def main():
    parser = argparse.ArgumentParser(
        description="MFUPSI protocol benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 demo.py                           # Test preset
  python3 demo.py --preset test default     # Run both presets
  python3 demo.py --preset tiny --seed 1    # Reproducible smallest run
  python3 demo.py --compressed --workers 4  # Packed cost model, 4 threads
        """,
    )
    parser.add_argument("--preset", nargs="+", choices=sorted(PRESETS), default=["test"], help="Parameter presets to run (default: test)")
    parser.add_argument("--clients", type=int, default=None, help="Override number of parties")
    parser.add_argument("--size", type=int, default=None, help="Override elements per party")
    parser.add_argument("--d1", type=int, default=None, help="Override partition size")
    parser.add_argument("--band-width", type=int, default=None, help="Override band width w")
    parser.add_argument("--z", type=int, default=None, help="Override PIR dimension")
    parser.add_argument("--epsilon", type=float, default=None, help="Override expansion factor")
    parser.add_argument("--updates", type=int, default=None, help="Override changes per updated party")
    parser.add_argument("--queries", type=int, default=None, help="Override number of queries")
    parser.add_argument("--update-parties", type=int, default=3, help="Parties that update (default: 3)")
    parser.add_argument("--strict", action="store_true", help="Fail on inconsistent partition systems")
    parser.add_argument("--compressed", action="store_true", help="Use the packed ciphertext cost model")
    parser.add_argument("--workers", type=int, default=1, help="Threads for per-party work (default: 1)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for keys, data, masks and queries")
    parser.add_argument("--csv", default=None, help="Results file (default: results_<timestamp>.csv)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    csv_path = args.csv or time.strftime("results_%Y%m%d_%H%M%S.csv")
    rows = []
    for i, preset in enumerate(args.preset):
        if i:
            print("\n\n")
        params = build_params(args, preset)
        metrics = run_experiment(params, args)
        rows.append(result_row(params, metrics))

    append_results(csv_path, rows)
    print(f"\nResults saved to: {csv_path}")


if __name__ == "__main__":
    main()
