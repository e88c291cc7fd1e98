# src/admissions/scripts/reset_db.py
"""
Drop and recreate the ``applicants`` table.

- Exposes a `main()` entrypoint so tests can import and call it.
- Reads a single SQL schema file and executes it via `get_conn()`.
- Accepts `--schema` and `--env` CLI options.
- A missing `.env` file is not an error; existing environment variables win.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Module-level import so tests can monkeypatch:
#   monkeypatch.setattr(reset_db, "get_conn", fake_conn)
from ..data.psych_connect import get_conn


# parents[0] = scripts/, parents[1] = admissions/
PACKAGE_ROOT: Path = Path(__file__).resolve().parents[1]
SCHEMA_PATH: Path = PACKAGE_ROOT / "sql" / "schema" / "schema.sql"


def load_env(env_path: Optional[str]) -> bool:
    """
    Load KEY=VALUE pairs from `env_path` without overriding the environment.

    Returns
    -------
    bool
        True if a file was found and loaded.
    """
    if not env_path or not Path(env_path).is_file():
        return False
    return load_dotenv(env_path, override=False)


def apply_schema(schema_file: Path) -> int:
    """
    Execute the given SQL schema file against the database and commit.

    Parameters
    ----------
    schema_file : Path
        Path to the SQL file to execute.

    Returns
    -------
    int
        Number of statements (counted on `;`), for the printed summary.
    """
    sql_text = Path(schema_file).read_text(encoding="utf-8")
    with get_conn() as conn, conn.cursor() as cur:
        cur.execute(sql_text)
        conn.commit()
    return sql_text.count(";") or 1


def main(argv: Optional[list[str]] = None) -> dict:
    """
    Command-line entrypoint: parse args, load env, apply schema,
    then print and return a summary dict.
    """
    parser = argparse.ArgumentParser(description="Drop/create the applicants schema.")
    parser.add_argument(
        "--schema",
        default=str(SCHEMA_PATH),
        help="Path to schema.sql (default: bundled schema)",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Path to a .env file (optional).",
    )
    args = parser.parse_args(argv)

    load_env(args.env)
    statements = apply_schema(Path(args.schema))

    out = {"schema": str(args.schema), "statements": statements}
    print(out)
    return out


if __name__ == "__main__":
    # python -m admissions.scripts.reset_db --schema ...
    main()
