"""Application state: the case list, the selected case and display preferences."""
from __future__ import annotations

import logging
from typing import Any, Optional

from case_tree.case_store import CaseStore
from case_tree.flow import CASE_FLOW, StageNode
from case_tree.records import SAMPLE_CASE, CaseRecord, case_meta
from case_tree.render import MIN_SCALE, TreeContainer, TreeView

logger = logging.getLogger(__name__)

COMPACT_KEY = "family-case-tree-compact"


class CaseTracker:
    def __init__(
        self,
        store: CaseStore,
        flow: StageNode = CASE_FLOW,
        compact_key: str = COMPACT_KEY,
        compact_default: bool = True,
        min_scale: float = MIN_SCALE,
    ):
        self.store = store
        self.flow = flow
        self.compact_key = compact_key
        self.compact_default = compact_default
        self.min_scale = min_scale
        self.active_index = -1
        self.compact = compact_default
        self.container = TreeContainer()

    # Lifecycle

    def load(self, seed_sample: bool = True) -> "CaseTracker":
        self.store.load()
        if not len(self.store) and seed_sample:
            self.store.upsert(CaseRecord.model_validate(SAMPLE_CASE))
            logger.info("[tracker] No saved cases, seeded sample case")
        self.compact = self._load_compact()
        self.select(0 if len(self.store) else -1)
        return self

    def save(self) -> None:
        self.store.save()

    def _load_compact(self) -> bool:
        raw = self.store.kv.get_item(self.compact_key)
        if raw is None:
            return self.compact_default
        return raw == "1"

    def set_compact(self, flag: bool) -> bool:
        self.compact = bool(flag)
        self.store.kv.set_item(self.compact_key, "1" if self.compact else "0")
        if self.active_case is not None:
            self.render_active()
        return self.compact

    # Selection

    @property
    def active_case(self) -> Optional[CaseRecord]:
        return self.store.get(self.active_index)

    def select(self, index: int) -> Optional[CaseRecord]:
        """Make ``index`` the active case; an invalid index leaves no case loaded."""
        self.active_index = index if self.store.is_valid_index(index) else -1
        record = self.active_case
        if record is None:
            self.container.clear()
            return None
        self.render_active()
        return record

    def new_case(self) -> str:
        self.active_index = -1
        self.container.clear()
        return self.flow.id

    # Mutations

    def submit(self, record: CaseRecord, index: Any = -1) -> int:
        idx = self.store.upsert(record, index)
        self.select(idx)
        return idx

    def delete(self, index: Optional[int] = None) -> bool:
        target = self.active_index if index is None else index
        if not self.store.delete(target):
            return False
        self.select(0 if len(self.store) else -1)
        return True

    # Rendering

    def render_active(self, available_width: Optional[float] = None) -> Optional[TreeView]:
        record = self.active_case
        if record is None:
            self.container.clear()
            return None
        return self.container.render(
            self.flow, record.current_stage, self.compact, available_width, self.min_scale
        )

    def preview(
        self,
        stage_id: Optional[str],
        compact: Optional[bool] = None,
        available_width: Optional[float] = None,
    ) -> TreeView:
        """Render a stage choice before it is saved. Nothing is persisted."""
        use_compact = self.compact if compact is None else compact
        return self.container.render(self.flow, stage_id, use_compact, available_width, self.min_scale)

    @staticmethod
    def case_meta(record: CaseRecord) -> str:
        return case_meta(record)
