"""Content-addressable byte cache shared by page and image fetches.

Blobs live at ``{cache_dir}/{sha1(identifier)}`` and are never expired or
invalidated: once a resource has been fetched successfully its bytes are
treated as canonical for every later run. A separate whole-list cache keeps
the harvested detail URLs in ``{cache_dir}/urllist.txt``.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import threading
import weakref
from collections.abc import Callable, Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

URL_LIST_FILENAME = "urllist.txt"


def cache_key(identifier: str) -> str:
    """Return the storage key for a resource identifier.

    The key is the hex SHA-1 digest of the identifier, which avoids
    filesystem-unsafe characters and bounds the file name length.
    """
    return hashlib.sha1(identifier.encode("utf-8")).hexdigest()


class ByteCache:
    """Read-through cache of fetched bytes.

    Example::

        cache = ByteCache("output/cache")
        content = cache.fetch_cached(url, lambda: manager.fetch(url))

    With an empty or None ``cache_dir`` the cache is disabled and every call
    goes straight to the fallback.
    """

    def __init__(self, cache_dir: Path | str | None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir else None
        # Entries vanish once no caller holds the lock.
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.cache_dir is not None

    def path_for(self, identifier: str) -> Path | None:
        """Return the blob path for ``identifier``, or None if disabled."""
        if self.cache_dir is None:
            return None
        return self.cache_dir / cache_key(identifier)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def fetch_cached(
        self, identifier: str, fetch_fn: Callable[[], bytes]
    ) -> bytes:
        """Return cached bytes for ``identifier`` or fetch and store them.

        Args:
            identifier: Canonical resource URL.
            fetch_fn: Fallback called on a miss. Exceptions propagate and
                nothing is stored.

        Returns:
            The resource bytes, from storage when present.
        """
        path = self.path_for(identifier)
        if path is None:
            return fetch_fn()

        # Held across check, fetch and write so one key is fetched at most once.
        with self._lock_for(path.name):
            if path.is_file():
                logger.debug(f"Cache hit for {identifier} ({path.name})")
                return path.read_bytes()

            logger.debug(f"Cache miss for {identifier} ({path.name})")
            content = fetch_fn()
            self._write_blob(path, content)
            return content

    def _write_blob(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # -- Whole-list cache ------------------------------------------------

    @property
    def url_list_path(self) -> Path | None:
        if self.cache_dir is None:
            return None
        return self.cache_dir / URL_LIST_FILENAME

    def load_url_list(self) -> list[str] | None:
        """Return the stored list of detail URLs, or None if absent."""
        path = self.url_list_path
        if path is None or not path.is_file():
            return None
        text = path.read_text(encoding="utf-8")
        return [line for line in text.split("\n") if line.strip()]

    def store_url_list(self, urls: Iterable[str]) -> None:
        """Store the harvested detail URLs as newline-joined text."""
        path = self.url_list_path
        if path is None:
            return
        self._write_blob(path, "\n".join(urls).encode("utf-8"))
        logger.info(f"Stored URL list at {path}")
