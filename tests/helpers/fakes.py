from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Any, List, Tuple


class FakeHasher:
    """
    Deterministic stand-in for bcrypt; output carries the `$2` family marker.
    """

    def __init__(self):
        self.calls: List[str] = []

    def _digest(self, plaintext: str) -> str:
        return "$2b$04$" + hashlib.sha256(plaintext.encode("utf-8")).hexdigest()

    def hash(self, plaintext: str) -> str:
        self.calls.append(plaintext)
        return self._digest(plaintext)

    def verify(self, plaintext: str, hashed: str) -> bool:
        return self._digest(plaintext) == hashed


@dataclass
class FakeSessions:
    rechecks: int = 0
    fail: bool = False

    def recheck_admin_auths(self) -> None:
        self.rechecks += 1
        if self.fail:
            raise RuntimeError("socket layer down")


@dataclass
class FakeRoster:
    players: List[Any] = field(default_factory=list)
    fail: bool = False

    def get_player_list(self) -> List[Any]:
        if self.fail:
            raise RuntimeError("roster unavailable")
        return list(self.players)


@dataclass
class FakeProcess:
    events: List[Tuple[str, Any]] = field(default_factory=list)
    sent: threading.Event = field(default_factory=threading.Event)

    def send_event(self, name: str, payload: Any) -> None:
        self.events.append((name, payload))
        self.sent.set()
