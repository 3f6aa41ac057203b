"""
reports.cache — Per-user report snapshot cache.

Each user holds one ``AggregateSnapshot`` in the Django cache:

* built lazily on the first read after login (login forgets the entry),
* invalidated for everyone after each successful mutation by bumping a
  shared version number,
* deleted on logout.

Entries are stored as ``(version, snapshot)`` so a bump makes every older
entry stale without enumerating keys.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.cache import cache

if TYPE_CHECKING:
    from .aggregation import AggregateSnapshot

VERSION_KEY = "reports:snapshot:version"


def _user_key(user_id: int) -> str:
    return f"reports:snapshot:user:{user_id}"


class ReportSnapshotCache:

    @staticmethod
    def current_version() -> int:
        version = cache.get(VERSION_KEY)
        if version is None:
            cache.add(VERSION_KEY, 1, timeout=None)
            version = cache.get(VERSION_KEY, 1)
        return version

    @staticmethod
    def get(user_id: int) -> AggregateSnapshot | None:
        entry = cache.get(_user_key(user_id))
        if entry is None:
            return None
        version, snapshot = entry
        if version != ReportSnapshotCache.current_version():
            return None
        return snapshot

    @staticmethod
    def store(user_id: int, snapshot: AggregateSnapshot, version: int) -> None:
        """
        Save a snapshot built while ``version`` was current.

        A snapshot started before a concurrent mutation is saved under the
        old version and therefore never served.
        """
        cache.set(
            _user_key(user_id),
            (version, snapshot),
            timeout=getattr(settings, "SNAPSHOT_CACHE_TIMEOUT", 300),
        )

    @staticmethod
    def forget_user(user_id: int) -> None:
        cache.delete(_user_key(user_id))

    @staticmethod
    def invalidate_all() -> None:
        try:
            cache.incr(VERSION_KEY)
        except ValueError:
            # Version key expired or was never written
            cache.set(VERSION_KEY, 2, timeout=None)


def invalidates_snapshots(func):
    """
    Bump the snapshot version after ``func`` returns successfully.

    Place it *outside* ``transaction.atomic`` so the bump happens after the
    commit; a raising ``func`` leaves every cached snapshot untouched.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        result = func(*args, **kwargs)
        ReportSnapshotCache.invalidate_all()
        return result

    return wrapper
