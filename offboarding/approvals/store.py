# offboarding/approvals/store.py
"""
In-memory request store with one lock per request.

Transitions take the request's lock for their whole duration, so two
callers racing on the same request are applied one after the other.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Generator, List, Optional

from .errors import RequestNotFoundError
from .models import ApprovalRequest


class RequestStore:
    """Owns every ApprovalRequest and its lock."""

    def __init__(self):
        self._requests: Dict[str, ApprovalRequest] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def add(self, request: ApprovalRequest) -> None:
        with self._lock:
            self._requests[request.id] = request
            self._locks[request.id] = threading.RLock()

    def get(self, request_id: str) -> Optional[ApprovalRequest]:
        with self._lock:
            return self._requests.get(request_id)

    def all(self) -> List[ApprovalRequest]:
        """Requests in insertion order."""
        with self._lock:
            return list(self._requests.values())

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._requests)

    @contextmanager
    def locked(self, request_id: str) -> Generator[ApprovalRequest, None, None]:
        """
        Hold a request's lock and yield the live request.

        Usage:
            with store.locked(request_id) as request:
                request.status = ...

        Raises:
            RequestNotFoundError: if the ID is unknown
        """
        with self._lock:
            lock = self._locks.get(request_id)
        if lock is None:
            raise RequestNotFoundError(request_id)

        with lock:
            yield self._requests[request_id]
