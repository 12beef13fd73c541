"""
Domain errors raised by the repository and upload operations.

Each error carries the HTTP status the API layer reports it with.
"""

from __future__ import annotations


class PostboardError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PostboardError):
    status_code = 404

    def __init__(self, message: str = "Could not find entity"):
        super().__init__(message)


class ConfigurationError(PostboardError):
    status_code = 500

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing upload settings: {', '.join(missing)}")
        self.missing = list(missing)


class AuthorizationError(PostboardError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
