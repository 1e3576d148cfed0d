#!/usr/bin/env python3
"""Sample dataset generation for manual runs and throughput checks.

Generates clients / workers / tasks files with deliberately messy headers
(``client_id``, ``Priority``, ``skill requirements`` ...) and a configurable
share of defective rows, so every validation pass has something to report:
- duplicate identifiers
- out-of-range PriorityLevel / Duration
- RequestedTaskIDs pointing at unknown tasks
- required skills no worker has
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

SKILLS = ["python", "sql", "design", "ops", "qa", "ml", "frontend", "docs"]
CATEGORIES = ["Build", "Test", "Deploy", "Research", "Support"]
GROUPS = ["alpha", "beta", "gamma"]


def generate_tasks(rows: int, defect_rate: float, rng: np.random.Generator) -> pd.DataFrame:
    data: dict[str, list[Any]] = {
        "Task ID": [f"T{i}" for i in range(1, rows + 1)],
        "name": [f"Task {i}" for i in range(1, rows + 1)],
        "type": rng.choice(CATEGORIES, rows).tolist(),
        "length": rng.integers(1, 6, rows).tolist(),
        "skill requirements": [
            ",".join(rng.choice(SKILLS, rng.integers(1, 3), replace=False)) for _ in range(rows)
        ],
        "phases": [f"{a}-{a + rng.integers(0, 3)}" for a in rng.integers(1, 4, rows)],
        "concurrency": rng.integers(1, 4, rows).tolist(),
    }
    df = pd.DataFrame(data)
    defects = rng.random(rows) < defect_rate
    df.loc[defects, "length"] = 0  # Duration < 1
    if rows > 1:
        df.loc[rows - 1, "Task ID"] = "T1"  # duplicate
    return df


def generate_workers(rows: int, rng: np.random.Generator) -> pd.DataFrame:
    # "ml" is never assigned to a worker so skill coverage has findings
    available = [s for s in SKILLS if s != "ml"]
    data: dict[str, list[Any]] = {
        "worker_id": [f"W{i}" for i in range(1, rows + 1)],
        "Worker Name": [f"Worker {i}" for i in range(1, rows + 1)],
        "skill": [",".join(rng.choice(available, 3, replace=False)) for _ in range(rows)],
        "availability": [str(sorted(rng.choice([1, 2, 3, 4, 5], 2, replace=False).tolist())) for _ in range(rows)],
        "capacity": rng.integers(1, 4, rows).tolist(),
        "group": rng.choice(GROUPS, rows).tolist(),
        "level": rng.integers(1, 6, rows).tolist(),
    }
    return pd.DataFrame(data)


def generate_clients(rows: int, task_rows: int, defect_rate: float, rng: np.random.Generator) -> pd.DataFrame:
    requested = []
    for _ in range(rows):
        ids = [f"T{n}" for n in rng.integers(1, task_rows + 1, 2)]
        if rng.random() < defect_rate:
            ids.append(f"T{task_rows + 100}")  # unknown task
        requested.append(";".join(ids))
    data: dict[str, list[Any]] = {
        "client_id": [f"C{i}" for i in range(1, rows + 1)],
        "Client Name": [f"Client {i}" for i in range(1, rows + 1)],
        "Priority": rng.integers(1, 6, rows).tolist(),
        "tasks": requested,
        "group": rng.choice(GROUPS, rows).tolist(),
        "metadata": ['{"tier": "gold"}' if rng.random() < 0.5 else "loyal customer" for _ in range(rows)],
    }
    df = pd.DataFrame(data)
    defects = rng.random(rows) < defect_rate
    df.loc[defects, "Priority"] = 9  # PriorityLevel out of 1..5
    return df


def write_frame(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".xlsx":
        df.to_excel(path, index=False, engine="openpyxl")
    else:
        df.to_csv(path, index=False)
    print(f"Created {path} ({len(df)} rows, {len(df.columns)} columns)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate messy sample clients / workers / tasks datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/
  %(prog)s data/ --clients 500 --workers 80 --tasks 300 --format xlsx
        """,
    )
    parser.add_argument("output_dir", type=Path, help="Directory for the generated files")
    parser.add_argument("--clients", type=int, default=50, help="Client rows (default: 50)")
    parser.add_argument("--workers", type=int, default=20, help="Worker rows (default: 20)")
    parser.add_argument("--tasks", type=int, default=30, help="Task rows (default: 30)")
    parser.add_argument("--defect-rate", type=float, default=0.1, help="Share of defective rows (default: 0.1)")
    parser.add_argument("--format", choices=["csv", "xlsx"], default="csv", help="Output format (default: csv)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if min(args.clients, args.workers, args.tasks) <= 0:
        print("Error: row counts must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.defect_rate <= 1.0:
        print("Error: --defect-rate must be between 0 and 1", file=sys.stderr)
        return 1

    rng = np.random.default_rng(args.seed)
    suffix = f".{args.format}"
    write_frame(generate_clients(args.clients, args.tasks, args.defect_rate, rng), args.output_dir / f"clients{suffix}")
    write_frame(generate_workers(args.workers, rng), args.output_dir / f"workers{suffix}")
    write_frame(generate_tasks(args.tasks, args.defect_rate, rng), args.output_dir / f"tasks{suffix}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
