"""Fixed set of independent pages, persisted together."""

import logging
from typing import Optional

from .constants import EditorConstants
from .storage import LocalStore

logger = logging.getLogger(__name__)


class PageStore:
    """Holds the text of every page and which one is active.

    The whole collection is written under one versioned key. State saved
    before pages existed (a single document under the legacy key) becomes
    page 0 on first load.
    """

    def __init__(self, store: LocalStore, page_count: int = EditorConstants.PAGE_COUNT):
        self.store = store
        self.page_count = page_count
        self.pages: list[str] = [""] * page_count
        self.active = 0

    def load(self) -> None:
        saved = self.store.get(EditorConstants.PAGES_STORAGE_KEY)
        if isinstance(saved, list):
            pages = [p if isinstance(p, str) else "" for p in saved[:self.page_count]]
            self.pages = pages + [""] * (self.page_count - len(pages))
        else:
            if saved is not None:
                logger.warning("Stored pages have invalid format, starting empty")
            self.pages = [""] * self.page_count
            legacy = self.store.get(EditorConstants.LEGACY_STORAGE_KEY)
            if isinstance(legacy, str) and legacy:
                logger.info("Migrating single-document state into page 1")
                self.pages[0] = legacy
                self.save()

        active = self.store.get(EditorConstants.ACTIVE_PAGE_KEY, 0)
        if isinstance(active, int) and 0 <= active < self.page_count:
            self.active = active
        else:
            self.active = 0

    def save(self) -> bool:
        return self.store.update({
            EditorConstants.PAGES_STORAGE_KEY: list(self.pages),
            EditorConstants.ACTIVE_PAGE_KEY: self.active,
        })

    @property
    def current_text(self) -> str:
        return self.pages[self.active]

    def set_current(self, text: str) -> None:
        self.pages[self.active] = text

    def switch_to(self, index: int, current_text: Optional[str] = None) -> bool:
        """Make page ``index`` active, keeping the outgoing page's text.

        Returns False (and changes nothing) when ``index`` is out of range
        or already active.
        """
        if not 0 <= index < self.page_count or index == self.active:
            return False
        if current_text is not None:
            self.pages[self.active] = current_text
        logger.debug(f"Switching from page {self.active + 1} to page {index + 1}")
        self.active = index
        self.save()
        return True
