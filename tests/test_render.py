import pytest

from case_tree.flow import CASE_FLOW, build_flow, flatten
from case_tree.render import (
    MIN_SCALE,
    TreeContainer,
    estimate_width,
    fit_scale,
    fit_to_width,
    render,
    render_html,
)

ALL_IDS = [s["id"] for s in flatten(CASE_FLOW)]


def test_every_node_rendered_once_in_preorder():
    view = render(CASE_FLOW, "arraignment")
    assert [n.id for n in view.walk()] == ALL_IDS
    assert [n.label for n in view.walk()] == [s["label"] for s in flatten(CASE_FLOW)]


@pytest.mark.parametrize("stage_id", ALL_IDS)
def test_exactly_one_active_for_known_ids(stage_id):
    view = render(CASE_FLOW, stage_id)
    active = view.active_nodes()
    assert [n.id for n in active] == [stage_id]
    assert view.active_id == stage_id


@pytest.mark.parametrize("stage_id", ["nonexistent", "", None, "ARRESTED"])
def test_no_active_for_unknown_ids(stage_id):
    view = render(CASE_FLOW, stage_id)
    assert view.active_nodes() == []
    assert view.active_id is None


def test_render_is_idempotent():
    first = render(CASE_FLOW, "plea")
    second = render(CASE_FLOW, "plea")
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_state_sentence_keeps_four_level_nesting():
    view = render(CASE_FLOW, "state_sentence")
    root = view.root
    assert root.id == "arrested" and not root.active
    arraignment = root.children[0]
    assert arraignment.id == "arraignment"
    plea = next(ch for ch in arraignment.children if ch.id == "plea")
    assert [ch.id for ch in plea.children] == ["probation", "state_sentence"]
    sentence = plea.children[1]
    assert sentence.active
    assert sentence.classes == "tree-node tree-node--active"
    assert sentence.meta == "Stage ID: state_sentence"
    assert len(view.active_nodes()) == 1


def test_compact_changes_presentation_only():
    normal = render(CASE_FLOW, "bail_denied")
    compact = render(CASE_FLOW, "bail_denied", compact=True)
    assert normal.outline() == compact.outline()
    assert normal.active_id == compact.active_id
    assert normal.list_class == "tree-ul"
    assert compact.list_class == "tree-ul tree-ul--compact"


def test_to_dict_shape():
    data = render(CASE_FLOW, "trial").to_dict()
    assert data["active_id"] == "trial"
    assert data["root"]["id"] == "arrested"
    assert data["root"]["meta"] == "Stage ID: arrested"
    trial = data["root"]["children"][0]["children"][-1]
    assert trial["id"] == "trial"
    assert trial["active"] is True
    assert trial["children"] == []


def test_render_html_marks_single_active_node():
    html = str(render_html(render(CASE_FLOW, "state_sentence")))
    assert html.count("<li>") == len(ALL_IDS)
    assert html.count("tree-node--active") == 1
    assert 'data-stage-id="state_sentence"' in html
    assert "Stage ID: state_sentence" in html
    assert "transform" not in html


def test_render_html_escapes_labels():
    flow = build_flow({"id": "root", "label": "<b>Root</b> & co"})
    html = str(render_html(render(flow, "root")))
    assert "&lt;b&gt;Root&lt;/b&gt; &amp; co" in html
    assert "<b>" not in html


def test_fit_scale():
    assert fit_scale(300, 1000) == 1.0
    assert fit_scale(500, 416) == pytest.approx(0.8)
    assert fit_scale(10_000, 416) == MIN_SCALE
    assert fit_scale(500, 16) == 1.0
    assert fit_scale(500, 0) == 1.0
    assert fit_scale(1000, 416, min_scale=0.2) == pytest.approx(0.4)


def test_estimate_width_depends_on_density():
    assert estimate_width(render(CASE_FLOW, "plea")) == 6 * (180 + 24)
    assert estimate_width(render(CASE_FLOW, "plea", compact=True)) == 6 * (140 + 10)


def test_fit_to_width_scales_uniformly():
    view = render(CASE_FLOW, "plea")
    fitted = fit_to_width(view, 1000)
    assert fitted.scale == pytest.approx(984 / 1224)
    assert fitted.outline() == view.outline()
    assert "transform: scale(0.8039)" in str(render_html(fitted))
    assert fit_to_width(view, None).scale == 1.0
    assert fit_to_width(view, 5000).scale == 1.0


def test_container_replaces_previous_output():
    container = TreeContainer()
    assert container.is_empty
    container.render(CASE_FLOW, "bail_granted")
    view = container.render(CASE_FLOW, "trial", compact=True)
    assert container.view is view
    assert view.active_id == "trial"
    html = str(container.html)
    assert html.count("tree-node--active") == 1
    assert html.count('<ul class="tree-ul tree-ul--compact">') == 4
    assert html.count("<li>") == len(ALL_IDS)


def test_container_rerender_same_stage_matches_single_render():
    container = TreeContainer()
    container.render(CASE_FLOW, "plea")
    once = str(container.html)
    container.render(CASE_FLOW, "plea")
    assert str(container.html) == once


def test_container_clear():
    container = TreeContainer()
    container.render(CASE_FLOW, "plea")
    container.clear()
    assert container.is_empty
    assert str(container.html) == ""
