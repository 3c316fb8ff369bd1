"""Tree renderer: stage flow + current stage id -> nested visual tree.

render() is pure and returns a TreeView; render_html() turns a view into
markup. Fit-to-width is layered on afterwards as a uniform scale.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from markupsafe import Markup, escape

from case_tree.flow import StageNode, find_stage

NODE_CLASS = "tree-node"
ACTIVE_CLASS = "tree-node--active"
LIST_CLASS = "tree-ul"
COMPACT_LIST_CLASS = "tree-ul tree-ul--compact"

MIN_SCALE = 0.65
FIT_PADDING = 16

# Approximate box sizes (px) used to estimate the natural width of a tree.
NODE_WIDTH = 180
NODE_GAP = 24
COMPACT_NODE_WIDTH = 140
COMPACT_NODE_GAP = 10


@dataclass(frozen=True)
class VisualNode:
    id: str
    label: str
    active: bool
    children: Tuple["VisualNode", ...] = ()

    @property
    def classes(self) -> str:
        return f"{NODE_CLASS} {ACTIVE_CLASS}" if self.active else NODE_CLASS

    @property
    def meta(self) -> str:
        return f"Stage ID: {self.id}"


@dataclass(frozen=True)
class TreeView:
    root: VisualNode
    active_id: Optional[str]
    compact: bool = False
    scale: float = 1.0

    @property
    def list_class(self) -> str:
        return COMPACT_LIST_CLASS if self.compact else LIST_CLASS

    def walk(self) -> Iterator[VisualNode]:
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def active_nodes(self) -> List[VisualNode]:
        return [n for n in self.walk() if n.active]

    def leaf_count(self) -> int:
        return sum(1 for n in self.walk() if not n.children)

    def outline(self) -> Tuple[Any, ...]:
        """Structure without presentation: nested (id, active, children)."""
        def _outline(node: VisualNode) -> Tuple[Any, ...]:
            return (node.id, node.active, tuple(_outline(ch) for ch in node.children))
        return _outline(self.root)

    def to_dict(self) -> Dict[str, Any]:
        def _node(node: VisualNode) -> Dict[str, Any]:
            return {
                "id": node.id,
                "label": node.label,
                "meta": node.meta,
                "active": node.active,
                "class": node.classes,
                "children": [_node(ch) for ch in node.children],
            }
        return {
            "root": _node(self.root),
            "active_id": self.active_id,
            "compact": self.compact,
            "list_class": self.list_class,
            "scale": self.scale,
        }


def _build(node: StageNode, current_stage_id: Optional[str]) -> VisualNode:
    return VisualNode(
        id=node.id,
        label=node.label,
        active=node.id == current_stage_id,
        children=tuple(_build(ch, current_stage_id) for ch in node.children),
    )


def render(root: StageNode, current_stage_id: Optional[str], compact: bool = False) -> TreeView:
    """Build the visual tree for ``root`` marking ``current_stage_id`` as active.

    An id that matches no stage leaves every node inactive. Stage ids are
    unique, so at most one node is ever active.
    """
    active = current_stage_id if find_stage(root, current_stage_id) else None
    return TreeView(root=_build(root, current_stage_id), active_id=active, compact=compact)


def _node_html(node: VisualNode, list_class: str) -> str:
    parts = [
        "<li>",
        f'<div class="{node.classes}" data-stage-id="{escape(node.id)}">',
        f'<span class="tree-node__label">{escape(node.label)}</span>',
        f'<span class="tree-node__meta">{escape(node.meta)}</span>',
        "</div>",
    ]
    if node.children:
        parts.append(f'<ul class="{list_class}">')
        parts.extend(_node_html(ch, list_class) for ch in node.children)
        parts.append("</ul>")
    parts.append("</li>")
    return "".join(parts)


def render_html(view: TreeView) -> Markup:
    style = ""
    if view.scale < 1.0:
        style = f' style="transform: scale({view.scale:.4f}); transform-origin: top left"'
    body = _node_html(view.root, view.list_class)
    return Markup(f'<div class="tree-container"{style}><ul class="{view.list_class}">{body}</ul></div>')


def estimate_width(view: TreeView) -> int:
    """Natural width of the laid-out tree: leaves sit side by side."""
    width, gap = (COMPACT_NODE_WIDTH, COMPACT_NODE_GAP) if view.compact else (NODE_WIDTH, NODE_GAP)
    return view.leaf_count() * (width + gap)


def fit_scale(
    content_width: float,
    available_width: float,
    min_scale: float = MIN_SCALE,
    padding: float = FIT_PADDING,
) -> float:
    available = available_width - padding
    if available <= 0 or content_width <= available:
        return 1.0
    return max(available / content_width, min_scale)


def fit_to_width(view: TreeView, available_width: Optional[float], min_scale: float = MIN_SCALE) -> TreeView:
    if available_width is None:
        return dataclasses.replace(view, scale=1.0)
    scale = fit_scale(estimate_width(view), available_width, min_scale=min_scale)
    return dataclasses.replace(view, scale=scale)


class TreeContainer:
    """Display surface holding at most one rendered tree.

    Every render clears the previous output first, so re-rendering with a new
    stage id never leaves nodes from an earlier render behind.
    """

    def __init__(self) -> None:
        self.view: Optional[TreeView] = None
        self.html: Markup = Markup("")

    def clear(self) -> None:
        self.view = None
        self.html = Markup("")

    def render(
        self,
        root: StageNode,
        current_stage_id: Optional[str],
        compact: bool = False,
        available_width: Optional[float] = None,
        min_scale: float = MIN_SCALE,
    ) -> TreeView:
        self.clear()
        view = fit_to_width(render(root, current_stage_id, compact), available_width, min_scale)
        self.view = view
        self.html = render_html(view)
        return view

    @property
    def is_empty(self) -> bool:
        return self.view is None
