"""Central id generation for workspaces and terminal sessions."""

import threading
import uuid
from typing import Set


class SessionIdGenerator:
    """Mints ids that are unique across every workspace for the process lifetime.

    UUID4 collisions are not expected; the issued set turns one into a
    retry instead of a silently shared id.

    The issued set only grows; it is kept for the process lifetime.
    """

    def __init__(self):
        self._issued: Set[str] = set()
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            while True:
                candidate = str(uuid.uuid4())
                if candidate not in self._issued:
                    self._issued.add(candidate)
                    return candidate
