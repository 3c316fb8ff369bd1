import logging
from typing import Optional
from flask import request, jsonify
from case_tree.api import config, state
from case_tree.case_store import CaseStore, KeyValueStore
from case_tree.storage import JsonFileStore
from case_tree.tracker import CaseTracker

logger = logging.getLogger("api")


def load_tracker(kv: Optional[KeyValueStore] = None, seed_sample: Optional[bool] = None) -> CaseTracker:
    """Build the application-state object and load the saved cases into it."""
    if kv is None:
        kv = JsonFileStore(config.STORE_PATH)
    store = CaseStore(kv, key=config.STORAGE_KEY)
    tracker = CaseTracker(
        store,
        compact_key=config.COMPACT_KEY,
        compact_default=config.COMPACT_DEFAULT,
        min_scale=config.TREE_MIN_SCALE,
    )
    tracker.load(seed_sample=config.SEED_SAMPLE_CASE if seed_sample is None else seed_sample)
    with state.tracker_lock:
        state.tracker = tracker
    logger.info(f"[api] Loaded {len(store)} case(s) from key '{store.key}'")
    return tracker


def get_tracker() -> CaseTracker:
    if state.tracker is None:
        return load_tracker()
    return state.tracker


def require_api_key():
    if config.API_KEY:
        key = request.headers.get("X-API-Key", "")
        if key != config.API_KEY:
            return jsonify({"error": "Unauthorized"}), 401
    return None
