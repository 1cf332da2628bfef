from __future__ import annotations

from typing import Dict


class CMSError(Exception):
    """Base error carrying the HTTP status the API should answer with."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(CMSError):
    status_code = 400


class InvalidPostIdError(InvalidRequestError):
    pass


class InvalidDateError(InvalidRequestError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(
            f'Invalid {field} format: "{value}". Expected "yyyy-MM-dd HH:mm:ss" or ISO format.'
        )
        self.field = field
        self.value = value


class PostNotFoundError(CMSError):
    status_code = 404

    def __init__(self, post_id: str) -> None:
        super().__init__(f"File not found: {post_id}")
        self.post_id = post_id


class PostExistsError(CMSError):
    status_code = 409

    def __init__(self, post_id: str) -> None:
        super().__init__(f"File already exists: {post_id}")
        self.post_id = post_id


class UnmappedCategoryError(InvalidRequestError):
    def __init__(self, suggestions: Dict[str, str]) -> None:
        listed = ", ".join(f'"{name}" (suggested: {slug})' for name, slug in suggestions.items())
        super().__init__(f"Categories need a slug in categoryMappings: {listed}")
        self.suggestions = suggestions


class SiteConfigError(CMSError):
    """The site config cannot be updated without risking existing entries."""
