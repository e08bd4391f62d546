"""Punto de entrada: python -m libre_fram."""

from __future__ import annotations

from libre_fram.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
