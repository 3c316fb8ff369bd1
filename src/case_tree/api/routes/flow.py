from typing import Any, Dict
from flask import Blueprint, request, jsonify
from flasgger import swag_from
from werkzeug.exceptions import BadRequest
from pydantic import ValidationError

from case_tree.api import config, dependencies, models, state
from case_tree.flow import CASE_FLOW, find_stage, flow_metadata, flow_to_dict, stage_options, stage_path
from case_tree.render import TreeView, fit_to_width, render, render_html

flow_bp = Blueprint('flow', __name__)


def view_payload(view: TreeView, fmt: str = "both") -> Dict[str, Any]:
    out: Dict[str, Any] = {"active_id": view.active_id, "compact": view.compact, "scale": view.scale}
    if fmt in ("json", "both"):
        out["tree"] = view.to_dict()
    if fmt in ("html", "both"):
        out["html"] = str(render_html(view))
    return out


def _parse_render_request() -> models.RenderRequest:
    raw = request.get_json(silent=True)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise BadRequest("Body must be a JSON object")
    return models.RenderRequest(**raw)


@flow_bp.route("/api/flow", methods=["GET"])
def get_flow():
    return jsonify({"flow": flow_to_dict(CASE_FLOW), **flow_metadata(CASE_FLOW)})


@flow_bp.route("/api/flow/stages", methods=["GET"])
def get_stages():
    indent = request.args.get("indent", config.STAGE_INDENT)
    return jsonify({"stages": stage_options(CASE_FLOW, indent=indent), "default": CASE_FLOW.id})


@flow_bp.route("/api/flow/stages/<stage_id>", methods=["GET"])
def get_stage(stage_id: str):
    node = find_stage(CASE_FLOW, stage_id)
    if node is None:
        return jsonify({"error": "stage_not_found", "stage_id": stage_id}), 404
    return jsonify({
        "id": node.id,
        "label": node.label,
        "children": [ch.id for ch in node.children],
        "path": stage_path(CASE_FLOW, stage_id),
    })


@flow_bp.route("/api/tree/render", methods=["POST"])
@swag_from({
    'tags': ['tree'],
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': True,
        'schema': {
            'type': 'object',
            'properties': {
                'stage_id': {'type': 'string', 'example': 'state_sentence'},
                'compact': {'type': 'boolean'},
                'available_width': {'type': 'integer'},
                'format': {'type': 'string', 'enum': ['json', 'html', 'both']},
            }
        }
    }],
    'responses': {200: {'description': 'OK'}}
})
def render_tree():
    try:
        parsed = _parse_render_request()
    except ValidationError as ve:
        return jsonify({"error": "validation_failed", "details": ve.errors(include_context=False)}), 400
    view = render(CASE_FLOW, parsed.stage_id, compact=bool(parsed.compact))
    view = fit_to_width(view, parsed.available_width, min_scale=config.TREE_MIN_SCALE)
    return jsonify(view_payload(view, parsed.format))


@flow_bp.route("/api/tree/preview", methods=["POST"])
def preview_tree():
    """Live preview of a stage choice using the saved compact preference; saves nothing."""
    try:
        parsed = _parse_render_request()
    except ValidationError as ve:
        return jsonify({"error": "validation_failed", "details": ve.errors(include_context=False)}), 400
    with state.tracker_lock:
        tracker = dependencies.get_tracker()
        view = tracker.preview(parsed.stage_id, compact=parsed.compact, available_width=parsed.available_width)
    return jsonify(view_payload(view, parsed.format))
