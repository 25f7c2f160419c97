# wishlist/client.py
"""
Client-side wishlist cache that talks to the /wishlist/ endpoint.

Toggles are applied locally first and rolled back if the server says no.
Errors never escape; the caller hears about them through ``notify``.
"""
import logging
import threading
from urllib.parse import urljoin

import requests

logger = logging.getLogger(__name__)

MSG_LOGIN_REQUIRED = "Please login to use wishlist"
MSG_FAILED = "Failed to update wishlist"
MSG_ERROR = "Something went wrong"


class WishlistStore:
    def __init__(self, base_url, session=None, notify=None, timeout=10, endpoint="/wishlist/"):
        self.base_url = base_url
        self.url = urljoin(base_url, endpoint)
        self.session = session if session is not None else requests.Session()
        self.notify = notify
        self.timeout = timeout

        self._items = set()
        self._pending = set()
        self._is_loading = False
        self._listeners = []
        self._lock = threading.Lock()

    # ==================== state ====================

    @property
    def items(self):
        with self._lock:
            return frozenset(self._items)

    @property
    def is_loading(self):
        return self._is_loading

    def is_in_wishlist(self, product_id):
        with self._lock:
            return str(product_id) in self._items

    def is_pending(self, product_id):
        with self._lock:
            return str(product_id) in self._pending

    def subscribe(self, listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _changed(self):
        for listener in list(self._listeners):
            listener(self)

    def _notify(self, level, message):
        if self.notify is not None:
            self.notify(level, message)

    def reset(self):
        """Sign-out: forget everything, don't refetch."""
        with self._lock:
            self._items = set()
            self._pending = set()
            self._is_loading = False
        self._changed()

    # ==================== network ====================

    def _headers(self):
        headers = {"Accept": "application/json"}
        token = self.session.cookies.get("csrftoken")
        if token:
            headers["X-CSRFToken"] = token
        return headers

    def fetch_wishlist(self):
        """Replace the local set with the server's. Returns True on success."""
        self._is_loading = True
        self._changed()
        try:
            ids = set()
            page = 1
            while True:
                resp = self.session.get(
                    self.url, params={"page": page}, headers=self._headers(), timeout=self.timeout,
                )
                if not resp.ok:
                    logger.warning("Wishlist fetch failed with HTTP %s", resp.status_code)
                    return False
                data = resp.json()
                if not isinstance(data, dict):
                    logger.warning("Wishlist fetch returned a non-object body")
                    return False
                for entry in data.get("items", []):
                    ids.add(str(entry["product"]["id"]))
                total_pages = (data.get("pagination") or {}).get("totalPages") or 1
                if page >= total_pages:
                    break
                page += 1

            with self._lock:
                self._items = ids
            return True
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Wishlist fetch failed: %s", e)
            return False
        finally:
            self._is_loading = False
            self._changed()

    def toggle_wishlist(self, product_id):
        """
        Optimistically flip membership, then confirm with the server.
        Returns False without doing anything if a toggle for this product
        is still in flight.
        """
        pid = str(product_id)
        with self._lock:
            if pid in self._pending:
                logger.debug("Toggle for %s already in flight, ignoring", pid)
                return False
            self._pending.add(pid)
            was_in = pid in self._items
            if was_in:
                self._items.discard(pid)
            else:
                self._items.add(pid)
        self._changed()

        try:
            resp = self.session.post(
                self.url, json={"productId": pid}, headers=self._headers(), timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Wishlist toggle for %s failed: %s", pid, e)
            self._rollback(pid, was_in)
            self._notify("error", MSG_ERROR)
            return True

        if resp.status_code == 401:
            self._rollback(pid, was_in)
            self._notify("error", MSG_LOGIN_REQUIRED)
        elif not resp.ok:
            logger.warning("Wishlist toggle for %s rejected with HTTP %s", pid, resp.status_code)
            self._rollback(pid, was_in)
            self._notify("error", MSG_FAILED)
        else:
            message = ""
            try:
                data = resp.json()
                if isinstance(data, dict):
                    message = data.get("message") or ""
            except ValueError:
                pass
            finally:
                self._settle(pid)
            self._notify("success", message)
        return True

    def _settle(self, pid):
        with self._lock:
            self._pending.discard(pid)
        self._changed()

    def _rollback(self, pid, was_in):
        with self._lock:
            self._pending.discard(pid)
            if was_in:
                self._items.add(pid)
            else:
                self._items.discard(pid)
        self._changed()
