"""
Shared test setup -- point the audit log at a throwaway SQLite file before
any pivotdax module builds its settings or engine.
"""
import os
import tempfile
from pathlib import Path

_TMP_DIR = tempfile.mkdtemp(prefix="pivotdax-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_TMP_DIR) / 'audit.db'}"
os.environ["EXECUTOR_BACKEND"] = "mock"
os.environ.pop("CATALOG_PATH", None)
