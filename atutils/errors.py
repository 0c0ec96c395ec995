"""Root of the at-utils exception hierarchy."""


class AtUtilsError(Exception):
    """Base exception for all at-utils errors."""

    pass
