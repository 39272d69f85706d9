# offboarding/approvals/pending_index.py
"""
Per-approver view of outstanding approval requests.

Holds request IDs only, in the order each approver was asked. The engine
updates it inside the same per-request lock as the transition that caused
the change; this class only guards its own map.
"""

import threading
from typing import Dict, Iterable, List, Set


class PendingWorkIndex:
    """approver_id -> ordered request IDs awaiting that approver."""

    def __init__(self):
        self._entries: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def add(self, approver_id: str, request_id: str) -> bool:
        """Add a request to an approver's queue. Returns False if already there."""
        with self._lock:
            queue = self._entries.setdefault(approver_id, [])
            if request_id in queue:
                return False
            queue.append(request_id)
            return True

    def add_many(self, approver_ids: Iterable[str], request_id: str) -> List[str]:
        """Add a request for several approvers; returns the ones newly added."""
        return [a for a in approver_ids if self.add(a, request_id)]

    def remove(self, approver_id: str, request_id: str) -> bool:
        with self._lock:
            queue = self._entries.get(approver_id)
            if not queue or request_id not in queue:
                return False
            queue.remove(request_id)
            if not queue:
                del self._entries[approver_id]
            return True

    def clear_request(self, request_id: str) -> List[str]:
        """Remove a request from every queue; returns the approvers affected."""
        affected = []
        with self._lock:
            for approver_id in list(self._entries):
                queue = self._entries[approver_id]
                if request_id in queue:
                    queue.remove(request_id)
                    affected.append(approver_id)
                    if not queue:
                        del self._entries[approver_id]
        return affected

    def get(self, approver_id: str) -> List[str]:
        with self._lock:
            return list(self._entries.get(approver_id, []))

    def approvers_for(self, request_id: str) -> Set[str]:
        """Every approver whose queue holds the request."""
        with self._lock:
            return {a for a, queue in self._entries.items() if request_id in queue}

    def __len__(self) -> int:
        with self._lock:
            return sum(len(q) for q in self._entries.values())
