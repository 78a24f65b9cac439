from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager


class AccountLocks:
    """One lock per account id, acquired in sorted id order.

    Two transfers touching the same account run one after the other, and
    transfers in opposite directions cannot deadlock. An id's lock is only
    kept while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: Counter[str] = Counter()

    def _checkout(self, account_id: str) -> threading.Lock:
        with self._guard:
            self._users[account_id] += 1
            return self._locks.setdefault(account_id, threading.Lock())

    def _checkin(self, account_id: str) -> None:
        with self._guard:
            self._users[account_id] -= 1
            if self._users[account_id] == 0:
                del self._users[account_id]
                del self._locks[account_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, *account_ids: str) -> Iterator[None]:
        with ExitStack() as stack:
            for account_id in sorted(set(account_ids)):
                lock = self._checkout(account_id)
                stack.callback(self._checkin, account_id)
                stack.enter_context(lock)
            yield
