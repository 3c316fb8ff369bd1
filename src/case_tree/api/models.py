from typing import Literal, Optional
from pydantic import BaseModel, Field

from case_tree.records import CaseRecord


class CaseSubmission(CaseRecord):
    # Negative or out-of-range index means "create"
    index: int = -1

    def to_record(self) -> CaseRecord:
        return CaseRecord.model_validate(self.model_dump(exclude={"index"}))


class RenderRequest(BaseModel):
    stage_id: str = Field(default="", max_length=100)
    compact: Optional[bool] = None
    available_width: Optional[int] = Field(default=None, ge=0, le=100_000)
    format: Literal["json", "html", "both"] = "both"


class CompactRequest(BaseModel):
    compact: bool
