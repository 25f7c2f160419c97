# cart/storage.py
"""
Key-value backends the cart can persist into.

A backend stores one JSON-compatible blob per key. The cart never needs
more than load / save / delete.
"""
import json
import logging
import os
import threading

from django.conf import settings

logger = logging.getLogger(__name__)


class BaseStorage:
    def load(self, key):
        raise NotImplementedError

    def save(self, key, blob):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class MemoryStorage(BaseStorage):
    """Process-local dict. Used in tests and for throwaway carts."""

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def load(self, key):
        blob = self._data.get(key)
        # hand out a copy so callers can't mutate what we hold
        return json.loads(json.dumps(blob)) if blob is not None else None

    def save(self, key, blob):
        self._data[key] = json.loads(json.dumps(blob))

    def delete(self, key):
        self._data.pop(key, None)


class SessionStorage(BaseStorage):
    """
    Django session backend. The session is saved by SessionMiddleware at the
    end of the request, so save() only has to flag it as modified.
    """

    def __init__(self, session, expiry=None):
        self.session = session
        self.expiry = settings.CART_SESSION_TIMEOUT if expiry is None else expiry

    def load(self, key):
        return self.session.get(key)

    def save(self, key, blob):
        self.session[key] = blob
        if self.expiry:
            self.session.set_expiry(self.expiry)
        self.session.modified = True

    def delete(self, key):
        if key in self.session:
            del self.session[key]
            self.session.modified = True


class JSONFileStorage(BaseStorage):
    """All keys live in one JSON document on disk."""

    def __init__(self, path):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Cart file %s unreadable, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Cart file %s does not hold an object, starting empty", self.path)
            return {}
        return data

    def _write_all(self, data):
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp_path, self.path)

    def load(self, key):
        with self._lock:
            return self._read_all().get(key)

    def save(self, key, blob):
        with self._lock:
            data = self._read_all()
            data[key] = blob
            self._write_all(data)

    def delete(self, key):
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)
