"""Record identifier parsing shared by the scholar and sponsor services."""

import uuid

from scholar_registry.exceptions import InvalidIdentifierError


def parse_identifier(raw: str) -> uuid.UUID:
    """
    Convert a path identifier into a UUID.

    Called before any query is built, so a malformed id never costs a
    database round trip.

    Raises:
        InvalidIdentifierError: `raw` is not a well-formed UUID.
    """
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise InvalidIdentifierError(str(raw))
