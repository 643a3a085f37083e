"""Content hub exception hierarchy.

Lineage operations raise these; the API layer maps each kind to an HTTP status.
"""


class ContentHubError(Exception):
    """Base exception for all content hub failures."""

    status_code = 500


class NotFoundError(ContentHubError):
    """Item, version, project or user reference does not resolve."""

    status_code = 404


class ConflictingVersionWriteError(ContentHubError):
    """Two mutations on the same item collided. Re-read and retry."""

    status_code = 409


class ContentIOError(ContentHubError):
    """The content backend could not store, fetch or remove content."""

    status_code = 500


class InvalidInputError(ContentHubError):
    """Malformed or missing required fields."""

    status_code = 400
