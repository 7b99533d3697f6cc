# SPDX-License-Identifier: MIT

import threading

_registry_lock = threading.Lock()
_locks: dict[tuple[str, str], threading.RLock] = {}


def get_lock(scope: str, key: str) -> threading.RLock:
    with _registry_lock:
        lock = _locks.get((scope, key))
        if lock is None:
            lock = threading.RLock()
            _locks[(scope, key)] = lock
        return lock


def workspace_lock(workspace_id: str) -> threading.RLock:
    """Serializes graph mutations and recomputation within one workspace."""
    return get_lock("workspace", workspace_id)


def user_lock(user_id: str) -> threading.RLock:
    """Serializes timer and entry mutations of one user."""
    return get_lock("user", user_id)
