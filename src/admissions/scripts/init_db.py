"""Database initialization and optional seeding."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..application.intake import DuplicateEmailError, IntakeError, validate_submission
from ..data.store import PostgresApplicantStore
from . import reset_db

DEFAULT_SEED_FILE = Path(__file__).resolve().parents[1] / "data" / "sample_applicants.json"


def seed_applicants(store, rows: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Insert rows through intake validation; duplicates and invalid rows are skipped.

    :returns: Mapping with ``attempted``, ``inserted`` and ``skipped`` counts.
    """
    stats = {"attempted": 0, "inserted": 0, "skipped": 0}
    for row in rows:
        stats["attempted"] += 1
        try:
            store.insert(validate_submission(row))
        except DuplicateEmailError:
            stats["skipped"] += 1
            continue
        except IntakeError as e:
            print(f"[WARNING][init_db] skipping {row.get('email')!r}: {e.message}")
            stats["skipped"] += 1
            continue
        stats["inserted"] += 1
    return stats


def main(argv: Optional[list[str]] = None) -> dict:
    """Apply the schema, then seed from ``--seed`` (skipped with ``--no-seed``)."""
    parser = argparse.ArgumentParser(description="Create the schema and load sample applicants.")
    parser.add_argument("--schema", default=str(reset_db.SCHEMA_PATH))
    parser.add_argument("--seed", default=str(DEFAULT_SEED_FILE))
    parser.add_argument("--no-seed", action="store_true")
    parser.add_argument("--env", default=None)
    args = parser.parse_args(argv)

    reset_db.load_env(args.env)
    statements = reset_db.apply_schema(Path(args.schema))
    out: Dict[str, Any] = {"schema": args.schema, "statements": statements}

    seed_path = Path(args.seed)
    if args.no_seed or not seed_path.is_file():
        print("No seed JSON found; skipping initial load.")
    else:
        rows = json.loads(seed_path.read_text(encoding="utf-8"))
        out["seeded_from"] = str(seed_path)
        out.update(seed_applicants(PostgresApplicantStore(), rows))

    print(out)
    return out


if __name__ == "__main__":
    main()
