import json
import re
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasGenerator, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from models.project import CATEGORIES, STATUSES

URL_PATTERN = re.compile(r"^https?://.+")

LINK_LABELS = {
    "linked_profile": "Linked profile",
    "video_link": "Video link",
    "flow_file_link": "Flow file link",
    "deployed_link": "Deployed link",
    "instruction_document_link": "Instruction document link",
}


def parse_json_list(raw: Any) -> list:
    """Decode a JSON-array form field; anything that is not a JSON array becomes []."""
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


def coerce_rating(raw: Any) -> int:
    """Leading-integer parse of a rating form field, 0 when nothing numeric is there."""
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    match = re.match(r"\s*([+-]?\d+)", str(raw))
    return int(match.group(1)) if match else 0


class _CamelOut(BaseModel):
    class Config:
        from_attributes = True
        alias_generator = AliasGenerator(serialization_alias=to_camel)


# ---------------------------------------------------------------------------
# INPUT
# ---------------------------------------------------------------------------
class ProjectUpdate(BaseModel):
    """Fields accepted from the multipart form; unset fields are left alone on update."""

    name: Optional[str] = None
    project_name: Optional[str] = None
    project_description: Optional[str] = None
    linked_profile: Optional[str] = None
    video_link: Optional[str] = None
    flow_file_link: Optional[str] = None
    deployed_link: Optional[str] = None
    instruction_document_link: Optional[str] = None
    categories: Optional[list[str]] = None
    tools: Optional[list[str]] = None
    rating: Optional[int] = None
    status: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("project_name", "project_description", mode="before")
    @classmethod
    def _required_text(cls, v, info):
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError(f"{to_camel(info.field_name)} is required")
        return v

    @field_validator(*LINK_LABELS, mode="before")
    @classmethod
    def _check_link(cls, v, info):
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            return None
        if not URL_PATTERN.match(v):
            raise ValueError(f"{LINK_LABELS[info.field_name]} must be a valid URL")
        return v

    @field_validator("categories", mode="before")
    @classmethod
    def _parse_categories(cls, v):
        return parse_json_list(v)

    @field_validator("categories")
    @classmethod
    def _check_categories(cls, v):
        unknown = [c for c in v if c not in CATEGORIES]
        if unknown:
            raise ValueError(f"Invalid categories: {', '.join(map(str, unknown))}")
        return list(dict.fromkeys(v))

    @field_validator("tools", mode="before")
    @classmethod
    def _parse_tools(cls, v):
        return [str(t).strip() for t in parse_json_list(v) if str(t).strip()]

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce_rating(cls, v):
        return coerce_rating(v)

    @field_validator("rating")
    @classmethod
    def _check_rating(cls, v):
        if not 0 <= v <= 5:
            raise ValueError("Rating must be between 0 and 5")
        return v

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        if v is not None and v not in STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(STATUSES)}")
        return v


class ProjectCreate(ProjectUpdate):
    name: str = ""
    project_name: str
    project_description: str
    categories: list[str] = []
    tools: list[str] = []
    rating: int = 0


# ---------------------------------------------------------------------------
# OUTPUT
# ---------------------------------------------------------------------------
class OwnerOut(_CamelOut):
    id: UUID
    email: str
    name: Optional[str] = None


class BackgroundImageOut(_CamelOut):
    filename: str
    original_name: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    storage_path: str
    public_url: str


class ProjectOut(_CamelOut):
    id: UUID
    name: str
    project_name: str
    project_description: str
    linked_profile: Optional[str] = None
    video_link: Optional[str] = None
    flow_file_link: Optional[str] = None
    deployed_link: Optional[str] = None
    instruction_document_link: Optional[str] = None
    background_image: Optional[BackgroundImageOut] = None
    categories: list[str]
    tools: list[str]
    rating: int
    owner: OwnerOut = Field(serialization_alias="createdBy")
    status: str
    published_at: datetime
    created_at: datetime
    updated_at: datetime


def serialize_project(project) -> dict:
    return ProjectOut.model_validate(project).model_dump(mode="json", by_alias=True, exclude_none=True)
