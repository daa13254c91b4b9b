from fastapi import Query

from actunews.config import settings
from actunews.hooks import lifecycle
from actunews.lifecycle import EntityLifecycle
from actunews.outbox import MailOutbox, outbox


class PaginationParams:
    """
    Pagination / sorting query parameters for collection endpoints.

    ``page_size`` defaults to ``settings.DEFAULT_PAGE_SIZE`` and is clamped
    to ``settings.MAX_PAGE_SIZE``.  ``sort_by`` is validated against a
    whitelist by the service layer, not here.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
        sort_by: str = Query("updated_at", description="Column name to sort results by."),
        sort_order: str = Query(
            "desc", pattern="^(asc|desc)$", description="Sort direction: 'asc' or 'desc'."
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def get_lifecycle() -> EntityLifecycle:
    """The entity lifecycle pipeline used by create endpoints (overridable in tests)."""
    return lifecycle


def get_outbox() -> MailOutbox:
    return outbox
