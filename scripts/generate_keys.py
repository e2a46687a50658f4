"""Generate runtime key values for the agreement database and metadata cipher."""

from __future__ import annotations

import argparse
import secrets
from pathlib import Path

from leasing_app.core.config import DEFAULT_DB_KEY_ENV, DEFAULT_ENCRYPTION_KEY_ENV
from leasing_app.core.crypto import MetadataCipher


def _render_line(name: str, value: str, export: bool) -> str:
    prefix = "export " if export else ""
    return f"{prefix}{name}='{value}'"


def main() -> None:
    """Generate keys and optionally write/print env lines."""
    parser = argparse.ArgumentParser(description="Generate leasing runtime keys.")
    parser.add_argument("--write-env", default=None, help="Path to write generated keys.")
    parser.add_argument("--export", action="store_true", help="Prefix lines with 'export'.")
    parser.add_argument("--stdout", action="store_true", help="Also print lines to stdout.")
    parser.add_argument("--force", action="store_true", help="Overwrite existing env file.")
    args = parser.parse_args()

    lines = [
        _render_line(DEFAULT_DB_KEY_ENV, secrets.token_urlsafe(48), args.export),
        _render_line(DEFAULT_ENCRYPTION_KEY_ENV, MetadataCipher.generate_base64_key(), args.export),
    ]

    if args.write_env:
        target_path = Path(args.write_env)
        if target_path.exists() and not args.force:
            print(f"[INFO] key file already exists: {target_path}")
            return
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        print(f"[INFO] key file written: {target_path}")

    if args.stdout:
        print("\n".join(lines))


if __name__ == "__main__":
    main()
