"""BaseService — shared foundation for all cmsctl services.

Every service receives the :class:`Store` at construction time and owns its
transaction boundaries via ``self._store.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cmsctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class ContentTypeService(BaseService):
            def publish_content_type(self, ctx, name) -> ServiceResult:
                with self._store.transaction() as conn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Fire a lifecycle hook after commit.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        problems = self._store.plugin_manager.dispatch(hook_name, **payload)
        if problems:
            logger.debug("Lifecycle hook %s reported %d problem(s)", hook_name, len(problems))
        warnings.extend(problems)

    def _page_size(self, page: int, page_size: int | None) -> tuple[int, dict[str, list[str]]]:
        """Resolve *page_size* against the listing settings; return it with any problems."""
        listing = self._store.settings.listing
        size = page_size if page_size is not None else listing.default_page_size
        problems: dict[str, list[str]] = {}
        if page < 1:
            problems["page"] = ["Page must be at least 1."]
        if size < 1 or size > listing.max_page_size:
            problems["page_size"] = [f"Page size must be between 1 and {listing.max_page_size}."]
        return size, problems
