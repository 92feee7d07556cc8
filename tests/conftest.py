"""Test configuration for module import paths."""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_paths() -> None:
    root = Path(__file__).resolve().parents[1]
    for path in (root, root / "src"):
        if str(path) not in sys.path:
            sys.path.insert(0, str(path))


_ensure_paths()
