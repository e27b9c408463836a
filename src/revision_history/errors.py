"""Exceptions raised by the revision service.

Adapter-level failures (``sqlite3.Error``, ``asyncpg.PostgresError``) are
not wrapped — they propagate to the caller unchanged.
"""


class RevisionError(Exception):
    """Base class for revision service errors."""


class RevisionNotFoundError(RevisionError, LookupError):
    """No revision with the given id exists in the site scope."""

    def __init__(self, revision_id: str):
        """Initialize with the missing revision id."""
        super().__init__(f"Revision {revision_id} not found")
        self.revision_id = revision_id


class HashExhaustedError(RevisionError):
    """Could not generate a unique revision hash within the retry bound."""

    def __init__(self, attempts: int):
        """Initialize with the number of attempts made."""
        super().__init__(f"Failed to generate unique revision hash after {attempts} attempts")
        self.attempts = attempts


class EntityNotFoundError(RevisionError, LookupError):
    """The live entity behind a revision stream does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        """Initialize with the entity scope."""
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id
