"""Stage flow model for criminal-case progress.

The flow is a fixed tree of stages built once at import time:
 - walk(root) -> pre-order (node, depth) pairs
 - flatten(root) -> [{id, label}] in pre-order
 - stage_options(root) -> indented choices for a stage picker
 - find_stage(root, id) -> node or None (never raises)

Stage ids on case records are loose references; nothing here enforces that a
case moves along a tree edge.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple


class FlowDefinitionError(ValueError):
    pass


@dataclass(frozen=True)
class StageNode:
    id: str
    label: str
    children: Tuple["StageNode", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


CASE_FLOW_DATA: Dict[str, Any] = {
    "id": "arrested",
    "label": "Arrested / Booked",
    "children": [
        {
            "id": "arraignment",
            "label": "Arraignment / First Appearance",
            "children": [
                {"id": "bail_granted", "label": "Bail Granted / Released"},
                {"id": "bail_denied", "label": "Bail Denied / Remain in Custody"},
                {"id": "adjourned", "label": "Adjourned / New Date"},
                {
                    "id": "plea",
                    "label": "Plea Deal",
                    "children": [
                        {"id": "probation", "label": "Probation / Supervision"},
                        {"id": "state_sentence", "label": "Sentenced to State DOC"},
                    ],
                },
                {"id": "trial", "label": "Trial"},
            ],
        },
    ],
}


def _build(data: Mapping[str, Any], seen: Set[str]) -> StageNode:
    if not isinstance(data, Mapping):
        raise FlowDefinitionError(f"Stage definition must be a mapping, got {type(data).__name__}")
    sid = data.get("id")
    label = data.get("label")
    if not isinstance(sid, str) or not sid:
        raise FlowDefinitionError(f"Stage is missing an id: {data!r}")
    if not isinstance(label, str):
        raise FlowDefinitionError(f"Stage '{sid}' is missing a label")
    if sid in seen:
        raise FlowDefinitionError(f"Duplicate stage id '{sid}'")
    seen.add(sid)
    children = tuple(_build(ch, seen) for ch in (data.get("children") or []))
    return StageNode(id=sid, label=label, children=children)


def build_flow(data: Mapping[str, Any]) -> StageNode:
    """Build a stage tree from nested ``{id, label, children}`` mappings.

    Raises FlowDefinitionError when a stage lacks an id or label, or when an id
    appears more than once anywhere in the tree.
    """
    return _build(data, set())


def walk(root: StageNode, depth: int = 0) -> Iterator[Tuple[StageNode, int]]:
    """Yield (node, depth) in pre-order: node first, then children in order."""
    yield root, depth
    for child in root.children:
        yield from walk(child, depth + 1)


def flatten(root: StageNode) -> List[Dict[str, str]]:
    return [{"id": node.id, "label": node.label} for node, _ in walk(root)]


def stage_options(root: StageNode, indent: str = "— ") -> List[Dict[str, Any]]:
    """Stage choices with ``indent`` repeated once per depth level."""
    return [
        {"id": node.id, "label": f"{indent * depth}{node.label}", "depth": depth}
        for node, depth in walk(root)
    ]


def find_stage(root: StageNode, stage_id: Optional[str]) -> Optional[StageNode]:
    if not stage_id:
        return None
    for node, _ in walk(root):
        if node.id == stage_id:
            return node
    return None


def stage_path(root: StageNode, stage_id: Optional[str]) -> List[str]:
    """Ids from the root down to ``stage_id``; empty when the id is unknown."""
    if not stage_id:
        return []
    if root.id == stage_id:
        return [root.id]
    for child in root.children:
        sub = stage_path(child, stage_id)
        if sub:
            return [root.id] + sub
    return []


def flow_to_dict(node: StageNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "label": node.label,
        "children": [flow_to_dict(ch) for ch in node.children],
    }


def flow_metadata(root: StageNode) -> Dict[str, Any]:
    nodes = list(walk(root))
    return {
        "root": root.id,
        "num_stages": len(nodes),
        "max_depth": max(depth for _, depth in nodes),
        "leaves": [node.id for node, _ in nodes if node.is_leaf],
    }


CASE_FLOW: StageNode = build_flow(CASE_FLOW_DATA)
DEFAULT_STAGE_ID: str = CASE_FLOW.id
