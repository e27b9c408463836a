"""Revision models."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class EntityType(StrEnum):
    """Kinds of entity whose history is tracked."""

    PAGE = "page"
    PRODUCT = "product"
    CATEGORY = "category"
    THEME = "theme"
    SITE = "site"


class Revision(BaseModel):
    """An immutable snapshot of an entity's state."""

    id: str
    site_id: str
    entity_type: EntityType
    entity_id: str
    revision_hash: str
    parent_revision_id: str | None = None
    data: Any = None
    user_id: str | None = None
    message: str | None = None
    created_at: int
    is_current: bool = False


class RevisionNode(Revision):
    """A revision annotated with its position in the history forest.

    ``children`` holds child revision ids, oldest first, so a list of
    nodes serializes without reference cycles.
    """

    children: list[str] = Field(default_factory=list)
    depth: int = 0
    branch: int = 0


class RevisionMetadata(BaseModel):
    """Payload-free projection of a revision for list views."""

    id: str
    revision_hash: str
    created_at: int
    user_id: str | None = None
    message: str | None = None
    is_current: bool = False
    parent_revision_id: str | None = None


class GetRevisionsOptions(BaseModel):
    """Paging and filtering for revision listings."""

    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    current_only: bool = False
