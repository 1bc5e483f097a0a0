#!/usr/bin/env python3
"""
Seed the Model Builder database with a demo project.

Creates (once, matched by name) a "Sample Churn Project", writes a
synthetic churn CSV into the uploads directory, registers it as a dataset
and saves a baseline MLP config.

Usage:
    python3 run_seed.py                 # 200 rows, default paths
    python3 run_seed.py --rows 1000     # larger sample file
    python3 run_seed.py --seed 7        # different synthetic data
"""
import argparse
import asyncio
import sys
from pathlib import Path

import numpy as np
import pandas as pd

from model_builder.api.catalog.store import CatalogStore
from model_builder.api.config import ApiSettings
from model_builder.api.db import Database
from model_builder.api.services.dataset_service import estimate_rows, stored_filename

PROJECT_NAME = "Sample Churn Project"
PROJECT_DESCRIPTION = "Demo project created by seed script"
DATASET_NAME = "sample_churn.csv"
MODEL_NAME = "Baseline MLP"
MODEL_CONFIG = {
    "architecture": "mlp",
    "epochs": 5,
    "learningRate": 0.001,
    "batchSize": 32,
    "split": 0.8,
    "seed": 42,
}


def make_sample_frame(n_rows: int, seed: int) -> pd.DataFrame:
    """Synthetic telecom churn table: tenure, monthly/total charges, churn flag."""
    rng = np.random.default_rng(seed)
    tenure = rng.integers(0, 72, n_rows)
    monthly = np.round(20 + rng.uniform(0, 100, n_rows), 2)
    return pd.DataFrame({
        "customer_id": np.arange(1, n_rows + 1),
        "tenure": tenure,
        "monthly_charges": monthly,
        "total_charges": np.round(tenure * monthly, 2),
        "churn": (rng.uniform(0, 1, n_rows) < 0.25).astype(int),
    })


async def seed(settings: ApiSettings, n_rows: int, rng_seed: int) -> None:
    db = Database(settings.db_path)
    await db.initialize()
    try:
        catalog = CatalogStore(db)
        project = await catalog.find_project_by_name(PROJECT_NAME)
        if project is None:
            project = await catalog.create_project(PROJECT_NAME, PROJECT_DESCRIPTION)

        uploads = Path(settings.uploads_dir)
        uploads.mkdir(parents=True, exist_ok=True)
        filename = stored_filename(DATASET_NAME)
        path = uploads / filename
        make_sample_frame(n_rows, rng_seed).to_csv(path, index=False)

        dataset = await catalog.create_dataset(
            project.id, DATASET_NAME, filename, path.stat().st_size, estimate_rows(path)
        )
        model = await catalog.create_model(project.id, MODEL_NAME, MODEL_CONFIG)
    finally:
        await db.close()

    print("Seed complete.")
    print(f"Project: #{project.id} {project.name}")
    print(f"Dataset: #{dataset.id} {dataset.name} ({dataset.rows} rows, {dataset.size_bytes} bytes)")
    print(f"Model:   #{model.id} {model.name}")
    print()
    print(f"Open: http://localhost:{settings.port}/project.html?id={project.id}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed Model Builder with demo data")
    parser.add_argument("--rows", type=int, default=200, help="Rows in the sample CSV")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for the sample CSV")
    args = parser.parse_args()

    try:
        asyncio.run(seed(ApiSettings(), args.rows, args.seed))
    except Exception as exc:
        print(f"Seed failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
