import logging
from typing import Any, Dict, Optional
from flask import Blueprint, request, jsonify
from flasgger import swag_from
from werkzeug.exceptions import BadRequest
from pydantic import ValidationError

from case_tree.api import dependencies, models, state
from case_tree.api.extensions import limiter
from case_tree.api.routes.flow import view_payload
from case_tree.records import CaseRecord
from case_tree.tracker import CaseTracker

logger = logging.getLogger(__name__)
cases_bp = Blueprint('cases', __name__)


def _json_body() -> Dict[str, Any]:
    raw = request.get_json(silent=True)
    if raw is None:
        raise BadRequest("Expected application/json body")
    if not isinstance(raw, dict):
        raise BadRequest("Body must be a JSON object")
    return raw


def _validation_error(ve: ValidationError):
    return jsonify({"error": "validation_failed", "details": ve.errors(include_context=False)}), 400


def _case_view(tracker: CaseTracker, index: int, record: CaseRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "index": index,
        "case": record.to_json(),
        "meta": tracker.case_meta(record),
        "active_index": tracker.active_index,
    }
    view = tracker.container.view
    if view is not None:
        out.update(view_payload(view))
    return out


def _available_width() -> Optional[int]:
    return request.args.get("available_width", type=int)


def _submit(raw: Dict[str, Any], index: Optional[int] = None):
    if index is not None:
        raw = {**raw, "index": index}
    try:
        parsed = models.CaseSubmission(**raw)
    except ValidationError as ve:
        return _validation_error(ve)
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        created = not tracker.store.is_valid_index(parsed.index)
        idx = tracker.submit(parsed.to_record(), parsed.index)
        body = _case_view(tracker, idx, tracker.active_case)
    state.record_mutation("create" if created else "update")
    logger.info(f"[cases] {'Created' if created else 'Updated'} case #{idx}")
    return jsonify(body), 201 if created else 200


@cases_bp.route("/api/cases", methods=["GET"])
def list_cases():
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        return jsonify({
            "cases": [
                {"index": i, "active": i == tracker.active_index, **r.to_json()}
                for i, r in enumerate(tracker.store.records)
            ],
            "active_index": tracker.active_index,
            "compact": tracker.compact,
        })


@cases_bp.route("/api/cases", methods=["POST"])
@limiter.limit("30/minute")
@swag_from({
    'tags': ['cases'],
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': True,
        'schema': {
            'type': 'object',
            'properties': {
                'index': {'type': 'integer', 'example': -1},
                'fullName': {'type': 'string'},
                'dob': {'type': 'string', 'example': '1990-01-01'},
                'custodyType': {'type': 'string', 'enum': ['county', 'state', 'federal']},
                'facility': {'type': 'string'},
                'nextCourtDate': {'type': 'string'},
                'currentStage': {'type': 'string', 'example': 'arraignment'},
            }
        }
    }],
    'responses': {200: {'description': 'Updated'}, 201: {'description': 'Created'}, 400: {'description': 'Validation failed'}}
})
def submit_case():
    auth = dependencies.require_api_key()
    if auth:
        return auth
    return _submit(_json_body())


@cases_bp.route("/api/cases/new", methods=["POST"])
def new_case():
    auth = dependencies.require_api_key()
    if auth:
        return auth
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        default_stage = tracker.new_case()
        return jsonify({"index": -1, "active_index": tracker.active_index, "currentStage": default_stage})


@cases_bp.route("/api/cases/active", methods=["GET"])
def get_active_case():
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        record = tracker.active_case
        if record is None:
            return jsonify({"error": "no_active_case", "meta": "No case loaded."}), 404
        tracker.render_active(_available_width())
        return jsonify(_case_view(tracker, tracker.active_index, record))


@cases_bp.route("/api/cases/active", methods=["DELETE"])
def delete_active_case():
    auth = dependencies.require_api_key()
    if auth:
        return auth
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        if tracker.active_index < 0:
            return jsonify({"error": "no_active_case"}), 404
        return _delete(tracker, tracker.active_index)


@cases_bp.route("/api/cases/<int:index>", methods=["GET"])
def select_case(index: int):
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        record = tracker.select(index)
        if record is None:
            return jsonify({"error": "not_found", "meta": "No case loaded."}), 404
        tracker.render_active(_available_width())
        return jsonify(_case_view(tracker, index, record))


@cases_bp.route("/api/cases/<int:index>", methods=["PUT"])
@limiter.limit("30/minute")
def update_case(index: int):
    auth = dependencies.require_api_key()
    if auth:
        return auth
    return _submit(_json_body(), index=index)


def _delete(tracker: CaseTracker, index: int):
    # Caller holds state.tracker_lock
    if not tracker.delete(index):
        return jsonify({"error": "not_found"}), 404
    state.record_mutation("delete")
    logger.info(f"[cases] Deleted case #{index}")
    record = tracker.active_case
    return jsonify({
        "deleted": index,
        "active_index": tracker.active_index,
        "count": len(tracker.store),
        "meta": tracker.case_meta(record) if record else "No case loaded.",
    })


@cases_bp.route("/api/cases/<int:index>", methods=["DELETE"])
def delete_case(index: int):
    auth = dependencies.require_api_key()
    if auth:
        return auth
    with state.tracker_lock:
        return _delete(dependencies.get_tracker(), index)


@cases_bp.route("/api/preferences/compact", methods=["GET"])
def get_compact():
    with state.tracker_lock:
        return jsonify({"compact": dependencies.get_tracker().compact})


@cases_bp.route("/api/preferences/compact", methods=["PUT"])
def set_compact():
    auth = dependencies.require_api_key()
    if auth:
        return auth
    try:
        parsed = models.CompactRequest(**_json_body())
    except ValidationError as ve:
        return _validation_error(ve)
    with state.tracker_lock:
        compact = dependencies.get_tracker().set_compact(parsed.compact)
    return jsonify({"compact": compact})
