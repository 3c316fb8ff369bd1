import os
import sys
import tempfile

import pytest

# Ensure the `src/` directory is on sys.path so we can import `case_tree` package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

# Keep the server away from the real data/ directory and let tests hammer endpoints
_TMP_DIR = tempfile.mkdtemp(prefix="case-tree-tests-")
os.environ["CASE_TREE_STORE_PATH"] = os.path.join(_TMP_DIR, "case_store.json")
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["API_KEY"] = ""


@pytest.fixture(autouse=True)
def fresh_tracker():
    """Each test starts from an empty in-memory case list."""
    from case_tree.api import dependencies
    from case_tree.storage import MemoryStore
    return dependencies.load_tracker(kv=MemoryStore(), seed_sample=False)
