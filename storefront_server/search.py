"""Debounced product search with recent-search history and keyboard navigation."""

import asyncio
import logging
from typing import Optional

from .models import Product
from .product_service import MIN_SEARCH_LENGTH, ProductService
from .storage import RECENT_SEARCHES_KEY, LocalStorage

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3
MAX_RECENT_SEARCHES = 5
SEARCH_ERROR_MESSAGE = "Failed to search products. Please try again."


class SearchWidget:
    """
    State behind the storefront search box.

    Keystrokes are debounced before a search is sent. A new keystroke cancels
    the pending timer but not a search already in flight, so results are
    whatever the last search to finish returned.
    """

    def __init__(
        self,
        service: ProductService,
        storage: LocalStorage,
        debounce: float = DEBOUNCE_SECONDS,
        limit: int = 5,
    ) -> None:
        self.service = service
        self.storage = storage
        self.debounce = debounce
        self.limit = limit

        self.query = ""
        self.results: list[Product] = []
        self.is_searching = False
        self.is_open = False
        self.error: Optional[str] = None
        self.focused_index = -1
        self.recent_searches: list[str] = self._load_recent_searches()

        self._timer: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()
        self._active_searches = 0

    def _load_recent_searches(self) -> list[str]:
        stored = self.storage.get_item(RECENT_SEARCHES_KEY)
        if not isinstance(stored, list):
            if stored is not None:
                logger.error("Failed to load recent searches: stored value is not a list")
            return []
        return [term for term in stored if isinstance(term, str)][:MAX_RECENT_SEARCHES]

    def _save_recent_search(self, term: str) -> None:
        if len(term) < MIN_SEARCH_LENGTH:
            return
        updated = [term] + [s for s in self.recent_searches if s != term]
        self.recent_searches = updated[:MAX_RECENT_SEARCHES]
        try:
            self.storage.set_item(RECENT_SEARCHES_KEY, self.recent_searches)
        except OSError as e:
            logger.error(f"Failed to save recent search: {e}")

    def _cancel_timer(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _reset(self) -> None:
        self.results = []
        self.is_open = False
        self.is_searching = False
        self.focused_index = -1

    def set_query(self, text: str) -> None:
        """Handle an input change. Must be called from a running event loop."""
        self.query = text
        self._cancel_timer()

        if len(text) >= MIN_SEARCH_LENGTH:
            self.is_searching = True
            self.is_open = True
            self._timer = asyncio.get_running_loop().create_task(self._debounced(text))
        else:
            self._reset()

    async def _debounced(self, text: str) -> None:
        await asyncio.sleep(self.debounce)
        # Detached from the timer so later keystrokes don't cancel it
        self._active_searches += 1
        task = asyncio.get_running_loop().create_task(self._perform_search(text))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _search(self, text: str, limit: Optional[int] = None) -> list[Product]:
        """Run one search and apply its outcome. Callers count it as active beforehand."""
        self.error = None
        try:
            results = await asyncio.to_thread(self.service.search, text, limit or self.limit)
        except Exception:
            self.error = SEARCH_ERROR_MESSAGE
            raise
        finally:
            self._search_finished()

        # A cleared box stays empty even if an older search lands late
        if len(self.query) >= MIN_SEARCH_LENGTH:
            self.results = results
            self.focused_index = -1
        if results:
            self._save_recent_search(text)
        return results

    def _search_finished(self) -> None:
        self._active_searches -= 1
        timer_pending = self._timer is not None and not self._timer.done()
        if self._active_searches == 0 and not timer_pending:
            self.is_searching = False

    async def _perform_search(self, text: str) -> None:
        try:
            await self._search(text)
        except Exception as e:
            logger.error(f"Search failed: {e}", exc_info=True)

    async def submit(self, text: str, limit: Optional[int] = None) -> list[Product]:
        """
        Search for `text` right away, skipping the debounce.

        Request handlers use this when they need the results in the same call.
        Upstream errors are recorded on the widget and then re-raised.
        """
        self.query = text
        self._cancel_timer()
        term = text.strip()
        if len(term) < MIN_SEARCH_LENGTH:
            self._reset()
            return []

        self.is_searching = True
        self.is_open = True
        self._active_searches += 1
        return await self._search(term, limit)

    async def retry(self) -> None:
        """Run the current query again right away."""
        if len(self.query) < MIN_SEARCH_LENGTH:
            return
        self.is_searching = True
        self.is_open = True
        self._active_searches += 1
        await self._perform_search(self.query)

    async def wait_idle(self) -> None:
        """Wait for the pending timer and every in-flight search to finish."""
        if self._timer:
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
        while True:
            pending = [task for task in self._in_flight if not task.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)

    def handle_key(self, key: str) -> None:
        """Escape closes the results; arrow keys move focus with wraparound."""
        if key == "Escape":
            self.close()
            return

        if key not in ("ArrowDown", "ArrowUp") or not self.is_open:
            return
        count = len(self.results)
        if count == 0:
            return

        if key == "ArrowDown":
            self.focused_index = 0 if self.focused_index < 0 else (self.focused_index + 1) % count
        else:
            self.focused_index = (
                count - 1 if self.focused_index < 0 else (self.focused_index - 1 + count) % count
            )

    @property
    def focused_product(self) -> Optional[Product]:
        if 0 <= self.focused_index < len(self.results):
            return self.results[self.focused_index]
        return None

    def click_outside(self) -> None:
        self.close()

    def close(self) -> None:
        self.is_open = False
        self.focused_index = -1

    def select_recent(self, term: str) -> None:
        self.set_query(term)

    def clear(self) -> None:
        self.set_query("")
