#!/usr/bin/env python3
import argparse
import json
from pathlib import Path

import pandas as pd


def main() -> int:
    p = argparse.ArgumentParser(description="Verify summary demo outputs against expected summary counts.")
    p.add_argument("--summary", type=Path, required=True)
    p.add_argument("--expected", type=Path, default=Path(__file__).with_name("expected_summary.json"))
    args = p.parse_args()

    expected = json.loads(args.expected.read_text())
    summary = pd.read_csv(args.summary)

    got = {
        "n_rows": int(len(summary)),
        "n_genes": int(summary["gene"].nunique()),
        "n_cell_types": int(summary["cell_type"].nunique()),
        "n_fully_expressed": int((summary["percent_expressing"] >= 1.0).sum()),
    }
    for key, value in got.items():
        if int(expected.get(key, -1)) != int(value):
            raise SystemExit(f"Mismatch for {key}: expected={expected.get(key)} got={value}")

    print("Summary demo outputs verified.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
