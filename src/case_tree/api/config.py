import os
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))

MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', '65536'))  # 64 KB default
API_KEY = os.getenv("API_KEY", "")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "1") == "1"
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))
SENTRY_PROFILES_SAMPLE_RATE = float(os.getenv("SENTRY_PROFILES_SAMPLE_RATE", "0.0"))
APP_ENV = os.getenv("APP_ENV", "production")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

# Case storage
STORE_PATH = os.getenv("CASE_TREE_STORE_PATH", os.path.join(PROJECT_ROOT, "data", "case_store.json"))
STORAGE_KEY = os.getenv("STORAGE_KEY", "family-case-tree-cases")
COMPACT_KEY = os.getenv("COMPACT_KEY", "family-case-tree-compact")
SEED_SAMPLE_CASE = os.getenv("SEED_SAMPLE_CASE", "1") == "1"

# Tree display
COMPACT_DEFAULT = os.getenv("COMPACT_DEFAULT", "1") == "1"
TREE_MIN_SCALE = float(os.getenv("TREE_MIN_SCALE", "0.65"))
STAGE_INDENT = os.getenv("STAGE_INDENT", "— ")
