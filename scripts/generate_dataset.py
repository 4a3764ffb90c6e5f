"""
Superstore Dataset Generator
Writes a seeded synthetic raw sales file for local pipeline runs.
"""

import argparse
from pathlib import Path

from margin_analytics.config.logging import configure_logging
from margin_analytics.data import generate_sales_file

DEFAULT_OUTPUT = Path(__file__).parent.parent / "data" / "raw" / "superstore.csv"


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic Superstore sales file")
    parser.add_argument("--output", default=str(DEFAULT_OUTPUT), help="CSV path to write")
    parser.add_argument("--orders", type=int, default=5000, help="Number of orders")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--duplicate-rate", type=float, default=0.001, help="Share of duplicated lines")
    parser.add_argument("--corruption-rate", type=float, default=0.002, help="Share of corrupted product names")
    args = parser.parse_args()

    configure_logging()

    path = generate_sales_file(
        args.output,
        n_orders=args.orders,
        seed=args.seed,
        duplicate_rate=args.duplicate_rate,
        corruption_rate=args.corruption_rate,
    )

    size = path.stat().st_size / 1024 / 1024
    print(f"Wrote {path} ({size:.2f} MB)")


if __name__ == "__main__":
    main()
