"""Pytest configuration to ensure the `src` package layout is importable.

This adds the `src/` directory to `sys.path` so tests can import the
`nemeths` package (e.g., `from nemeths.api.app import create_app`) without
requiring an editable install in CI.  Stored results go to a throwaway
directory instead of ``./results``.
"""

import os
import sys
import tempfile
from pathlib import Path

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

os.environ.setdefault("NEMETHS_DATA_DIR", tempfile.mkdtemp(prefix="nemeths-tests-"))
