"""Current-pointer health models."""

from enum import StrEnum

from pydantic import BaseModel


class PointerState(StrEnum):
    """Health of an entity's current-revision pointer."""

    UNVERSIONED = "unversioned"
    OK = "ok"
    MISSING = "missing"
    DUPLICATED = "duplicated"


class CurrentPointerStatus(BaseModel):
    """Result of inspecting the current-revision pointer for one entity."""

    state: PointerState
    revision_count: int
    current_ids: list[str]

    @property
    def is_healthy(self) -> bool:
        """True when the pointer needs no repair."""
        return self.state in (PointerState.OK, PointerState.UNVERSIONED)
