from __future__ import annotations

from datetime import date, datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

VANE_TYPE = "vane"
USER_TYPE = "user"


class LogEntry(BaseModel):
    """A record that a vane was done on ``day``, written at ``timestamp``."""

    key: str = Field(..., alias="_key")
    timestamp: datetime
    day: date

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Vane(BaseModel):
    id: str = Field(..., alias="_id")
    title: Optional[str] = None
    log: List[LogEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="_createdAt")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ImportedVane(BaseModel):
    title: Optional[str] = None
    log: List[LogEntry] = Field(default_factory=list)
    fields: Dict[str, str] = Field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {"_type": VANE_TYPE, "log": [entry.to_document() for entry in self.log]}
        if self.title is not None:
            doc["title"] = self.title
        return doc


class User(BaseModel):
    id: Optional[str] = Field(default=None, alias="_id")
    uid: str
    github_id: str
    auth_token: str

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserOut(BaseModel):
    uid: str
    github_id: str = Field(..., alias="githubId")

    model_config = ConfigDict(populate_by_name=True)


class VaneCreate(BaseModel):
    title: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class VaneCreated(BaseModel):
    id: str = Field(..., alias="_id")
    title: str

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class VanesResponse(BaseModel):
    vanes: List[Vane]


class LogRequest(BaseModel):
    vane_id: str = Field(..., alias="vaneId", min_length=1)
    day: date

    @field_validator("day", mode="before")
    @classmethod
    def _day_from_timestamp(cls, value):
        if isinstance(value, str) and "T" in value:
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
            except ValueError:
                return value
        return value

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class LogResponse(BaseModel):
    vane_id: str = Field(..., alias="vaneId")
    log: List[LogEntry]
    message: str = "logged"

    model_config = ConfigDict(populate_by_name=True)


class UnlogResponse(BaseModel):
    vane_id: str = Field(..., alias="vaneId")
    message: str = "unlogged"

    model_config = ConfigDict(populate_by_name=True)
