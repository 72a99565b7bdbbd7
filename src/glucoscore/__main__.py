"""Punto de entrada: ``python -m glucoscore``."""

from __future__ import annotations

from glucoscore.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
