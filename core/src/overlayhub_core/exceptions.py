from __future__ import annotations


class NotFound(Exception):
    """A requested record does not exist; reported to clients as a 404."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
