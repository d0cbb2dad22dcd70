"""
Cart Store - single source of truth for a browser session's cart.

Features:
- Merge on (artwork_id, size); insertion order is display order
- Snapshot re-read before and persisted after every item mutation (drawer flag never persisted)
- Hydration falls back to an empty cart on corrupt snapshots
- Mutations serialized per store; listeners see the committed state object
"""
import secrets
import threading
from collections import OrderedDict
from dataclasses import replace
from typing import Callable, List, Optional

from storefront.errors import ERROR_CART_UNAVAILABLE, CartPersistenceError
from storefront.logging import get_logger, sanitize_id_for_logging
from .models import CartLineItem, CartState
from .snapshot import CorruptSnapshotError, decode_snapshot, encode_snapshot
from .storage import CartStorage

logger = get_logger(__name__)

Listener = Callable[[CartState], None]


def _require_int(name: str, value) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    return value


class CartStore:
    """
    Cart state container for one browser session.

    Construct one per session (see `CartStoreRegistry`) and pass it to
    whatever reads or writes the cart; nothing else mutates the state.
    """

    def __init__(self, session_id: str, storage: CartStorage, *, open_on_add: bool = False):
        if not session_id:
            raise ValueError("session_id must be a non-empty string")
        self.session_id = session_id
        self.open_on_add = open_on_add
        self._storage = storage
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._state = CartState(items=self._hydrate(), is_open=False)

    # ==================== HYDRATION ====================

    def _hydrate(self):
        try:
            raw = self._storage.load(self.session_id)
        except Exception as e:
            logger.error(
                "Failed to load cart for session %s: %s", sanitize_id_for_logging(self.session_id), e
            )
            raise CartPersistenceError(ERROR_CART_UNAVAILABLE) from e

        if not raw:
            return ()

        try:
            return decode_snapshot(raw)
        except CorruptSnapshotError as e:
            # Never fail the page load over a bad snapshot
            logger.warning(
                "Corrupted cart snapshot for session %s, starting empty: %s",
                sanitize_id_for_logging(self.session_id),
                e,
            )
            return ()

    def _reload(self) -> CartState:
        """Re-read persisted items; the drawer flag is process-local and kept. Call under the lock."""
        items = self._hydrate()
        current = self._state
        if items == current.items:
            return current
        self._state = CartState(items=items, is_open=current.is_open)
        return self._state

    def refresh(self) -> CartState:
        """Pick up items written by other processes sharing the same storage."""
        with self._lock:
            before = self._state
            state = self._reload()

        if state is not before:
            self._notify(state)
        return state

    # ==================== READS ====================

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def items(self):
        return self._state.items

    @property
    def is_open(self) -> bool:
        return self._state.is_open

    @property
    def total_items(self) -> int:
        return self._state.total_items

    @property
    def total_cents(self) -> int:
        return self._state.total_cents

    def find_item(self, artwork_id: str, size: str) -> Optional[CartLineItem]:
        return self._state.find(artwork_id, size)

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with the new state after each change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: CartState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Cart listener failed")

    # ==================== COMMIT ====================

    def _commit(self, items, is_open: bool, persist: bool = True) -> CartState:
        """Persist then publish; on a storage error the old state stays visible."""
        new_state = CartState(items=tuple(items), is_open=is_open)
        if persist:
            try:
                self._storage.save(self.session_id, encode_snapshot(new_state.items))
            except Exception as e:
                logger.error(
                    "Failed to persist cart for session %s: %s",
                    sanitize_id_for_logging(self.session_id),
                    e,
                )
                raise CartPersistenceError(ERROR_CART_UNAVAILABLE) from e
        self._state = new_state
        return new_state

    # ==================== MUTATIONS ====================

    def add_item(
        self,
        artwork_id: str,
        size: str,
        unit_price_cents: int,
        quantity: int = 1,
        *,
        title: str = "",
        image_url: str = "",
        size_display: Optional[str] = None,
    ) -> CartState:
        """
        Add a line, or increment the quantity of the matching (artwork_id, size) line.

        No upper bound is applied here; edition limits are checked at checkout.
        """
        if not artwork_id or not isinstance(artwork_id, str):
            raise ValueError("artwork_id must be a non-empty string")
        if not size or not isinstance(size, str):
            raise ValueError("size must be a non-empty string")
        if _require_int("unit_price_cents", unit_price_cents) < 0:
            raise ValueError("unit_price_cents must be non-negative")
        if _require_int("quantity", quantity) < 1:
            raise ValueError("quantity must be a positive integer")

        with self._lock:
            current = self._reload()
            items = list(current.items)
            for index, item in enumerate(items):
                if item.key == (artwork_id, size):
                    items[index] = item.with_quantity(item.quantity + quantity)
                    break
            else:
                items.append(
                    CartLineItem(
                        artwork_id=artwork_id,
                        size=size,
                        unit_price_cents=unit_price_cents,
                        quantity=quantity,
                        title=title or "",
                        image_url=image_url or "",
                        size_display=size_display,
                    )
                )
            is_open = True if self.open_on_add else current.is_open
            state = self._commit(items, is_open)

        self._notify(state)
        return state

    def remove_item(self, artwork_id: str, size: str) -> CartState:
        """Delete the matching line; absent lines are a no-op."""
        with self._lock:
            before = self._state
            current = self._reload()
            if current.find(artwork_id, size) is None:
                state = current
            else:
                items = [item for item in current.items if item.key != (artwork_id, size)]
                state = self._commit(items, current.is_open)

        if state is not before:
            self._notify(state)
        return state

    def update_quantity(self, artwork_id: str, size: str, new_quantity: int) -> CartState:
        """Set the quantity exactly; zero or less removes the line."""
        _require_int("new_quantity", new_quantity)
        if new_quantity <= 0:
            return self.remove_item(artwork_id, size)

        with self._lock:
            before = self._state
            current = self._reload()
            existing = current.find(artwork_id, size)
            if existing is None or existing.quantity == new_quantity:
                state = current
            else:
                items = [
                    item.with_quantity(new_quantity) if item.key == (artwork_id, size) else item
                    for item in current.items
                ]
                state = self._commit(items, current.is_open)

        if state is not before:
            self._notify(state)
        return state

    def reprice_item(self, artwork_id: str, size: str, unit_price_cents: int) -> CartState:
        """Replace a line's unit price once the customer accepted the catalog price."""
        if _require_int("unit_price_cents", unit_price_cents) < 0:
            raise ValueError("unit_price_cents must be non-negative")

        with self._lock:
            before = self._state
            current = self._reload()
            existing = current.find(artwork_id, size)
            if existing is None or existing.unit_price_cents == unit_price_cents:
                state = current
            else:
                items = [
                    replace(item, unit_price_cents=unit_price_cents) if item.key == (artwork_id, size) else item
                    for item in current.items
                ]
                state = self._commit(items, current.is_open)

        if state is not before:
            self._notify(state)
        return state

    def clear(self) -> CartState:
        """Empty the cart. The drawer stays as it was."""
        with self._lock:
            state = self._commit((), self._state.is_open)

        self._notify(state)
        return state

    # ==================== DRAWER ====================

    def _set_open(self, is_open: bool) -> CartState:
        with self._lock:
            current = self._state
            if current.is_open == is_open:
                return current
            state = self._commit(current.items, is_open, persist=False)

        self._notify(state)
        return state

    def open_cart(self) -> CartState:
        return self._set_open(True)

    def close_cart(self) -> CartState:
        return self._set_open(False)

    def toggle_cart(self) -> CartState:
        with self._lock:
            current = self._state
            state = self._commit(current.items, not current.is_open, persist=False)

        self._notify(state)
        return state


class CartStoreRegistry:
    """
    In-process map of session id -> CartStore.

    Several workers may serve the same session, so storage is the source of
    truth for items: `get` refreshes a cached store and every item mutation
    re-reads the snapshot before applying. Only the drawer flag lives here.
    """

    def __init__(self, storage: CartStorage, *, open_on_add: bool = False, max_sessions: int = 10000):
        self.storage = storage
        self.open_on_add = open_on_add
        self.max_sessions = max_sessions
        self._stores: "OrderedDict[str, CartStore]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> CartStore:
        """Store for a session, up to date with storage. Storage I/O runs outside the registry lock."""
        with self._lock:
            store = self._stores.get(session_id)
            if store is not None:
                self._stores.move_to_end(session_id)

        if store is not None:
            store.refresh()
            return store

        created = CartStore(session_id, self.storage, open_on_add=self.open_on_add)
        with self._lock:
            # Another thread may have built one meanwhile; keep the first
            store = self._stores.setdefault(session_id, created)
            self._stores.move_to_end(session_id)
            while len(self._stores) > self.max_sessions:
                self._stores.popitem(last=False)
        return store

    def __len__(self) -> int:
        return len(self._stores)


def new_session_id() -> str:
    """Random, URL-safe identifier for a browser cart session."""
    return secrets.token_urlsafe(24)
