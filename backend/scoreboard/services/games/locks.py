import threading
from contextlib import contextmanager
from typing import Dict, Hashable


class TenantLocks:
    """One mutex per streamer around read-modify-write-broadcast.

    Unrelated streamers never wait on each other; two controller requests
    for the same streamer run one after the other so cached versions and
    pushed snapshots stay in order.
    """

    def __init__(self):
        # Never pruned; one lock per streamer id
        self._locks: Dict[Hashable, threading.RLock] = {}

    def lock_for(self, tenant_id: Hashable) -> threading.RLock:
        return self._locks.setdefault(tenant_id, threading.RLock())

    @contextmanager
    def hold(self, tenant_id: Hashable):
        lock = self.lock_for(tenant_id)
        with lock:
            yield
