import os
import platform
from flask import Blueprint, jsonify, Response

from case_tree.api import config, state
from case_tree.flow import CASE_FLOW, flow_metadata

monitoring_bp = Blueprint('monitoring', __name__)


@monitoring_bp.route("/metrics", methods=["GET"])
def metrics():
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@monitoring_bp.route("/version", methods=["GET"])
def version():
    return jsonify({
        "version": config.APP_VERSION,
        "env": config.APP_ENV,
        "commit": os.getenv("GIT_COMMIT"),
        "python": platform.python_version(),
        "flow": flow_metadata(CASE_FLOW),
    })


@monitoring_bp.route("/api/version", methods=["GET"])
def api_version():
    return version()


@monitoring_bp.route("/api/health", methods=["GET"])
def health():
    tracker = state.tracker
    if tracker is None:
        return jsonify({"status": "error", "detail": "tracker not loaded"}), 500
    return jsonify({"status": "ok", "cases": len(tracker.store)}), 200


@monitoring_bp.route("/api/health/ready", methods=["GET"])
def health_ready():
    """Readiness probe - checks that saved cases have been loaded."""
    checks = {
        'tracker_loaded': state.tracker is not None,
        'flow_loaded': CASE_FLOW is not None,
    }
    all_ready = all(checks.values())
    return jsonify({
        "ready": all_ready,
        "checks": checks
    }), 200 if all_ready else 503


@monitoring_bp.route("/api/health/live", methods=["GET"])
def health_live():
    """Liveness probe - minimal check that service is running."""
    return jsonify({"alive": True}), 200
