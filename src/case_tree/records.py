from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from case_tree.flow import DEFAULT_STAGE_ID


class CustodyType(str, Enum):
    COUNTY = "county"
    STATE = "state"
    FEDERAL = "federal"


class CaseRecord(BaseModel):
    """One person's case. Serialized with the camelCase keys used on disk."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    full_name: str = Field(alias="fullName")
    dob: str = ""
    custody_type: CustodyType = Field(default=CustodyType.COUNTY, alias="custodyType", validate_default=True)
    facility: str = ""
    next_court_date: str = Field(default="", alias="nextCourtDate")
    # Loose reference to a stage id; unknown ids simply highlight nothing.
    current_stage: str = Field(default=DEFAULT_STAGE_ID, alias="currentStage")

    @field_validator("dob", "facility", "next_court_date", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("current_stage", mode="before")
    @classmethod
    def _null_as_root_stage(cls, v: Any) -> Any:
        return DEFAULT_STAGE_ID if v is None else v

    @field_validator("full_name")
    @classmethod
    def _require_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("full name is required")
        return v

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


SAMPLE_CASE: Dict[str, str] = {
    "fullName": "Sample Inmate",
    "dob": "1990-01-01",
    "custodyType": "county",
    "facility": "Bergen County Jail",
    "nextCourtDate": "2025-12-01",
    "currentStage": "arraignment",
}


def case_meta(record: CaseRecord) -> str:
    return (
        f"{record.full_name} • {record.facility or 'No facility'} • "
        f"Next court: {record.next_court_date or 'N/A'}"
    )
