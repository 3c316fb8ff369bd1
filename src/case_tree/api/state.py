import threading
from typing import Any, Optional

from case_tree.tracker import CaseTracker

# The single application-state object, created at startup by dependencies.load_tracker()
tracker: Optional[CaseTracker] = None
# Held across every read or mutate-then-read of the tracker; waitress serves from several threads
tracker_lock = threading.RLock()

# Metrics
REQUEST_COUNT: Any = None
REQUEST_LATENCY: Any = None
CASE_MUTATIONS: Any = None


def record_mutation(op: str) -> None:
    if CASE_MUTATIONS is not None:
        CASE_MUTATIONS.labels(op).inc()
