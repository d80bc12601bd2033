from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Protocol, Sequence

from adminvault.core.logger import get_logger


ADMINS_UPDATED_EVENT = "adminsUpdated"


class SessionRefresher(Protocol):
    def recheck_admin_auths(self) -> None: ...


class PlayerRoster(Protocol):
    def get_player_list(self) -> Sequence[Any]: ...


class ProcessControl(Protocol):
    def send_event(self, name: str, payload: Any) -> None: ...


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class OnlineAdminsNotifier:
    """
    Tells connected sessions and in-game admins that the admin list changed.

    Every step is best-effort; failures are logged and never raised.
    """

    def __init__(
        self,
        *,
        sessions: Optional[SessionRefresher] = None,
        roster: Optional[PlayerRoster] = None,
        process: Optional[ProcessControl] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.sessions = sessions
        self.roster = roster
        self.process = process
        self.logger = logger or get_logger("notifier")

    def refresh(self, admin_identifiers: Iterable[str]) -> List[Any]:
        """
        Returns the netids the update event was sent to.
        """
        if self.sessions is not None:
            try:
                self.sessions.recheck_admin_auths()
            except Exception as e:  # noqa: BLE001
                self.logger.warning(f"Failed to recheck admin auths: {e}")

        if self.roster is None or self.process is None:
            return []
        try:
            ids = set(admin_identifiers)
            online = [
                _field(p, "netid")
                for p in self.roster.get_player_list()
                if any(i in ids for i in (_field(p, "ids") or []))
            ]
            self.process.send_event(ADMINS_UPDATED_EVENT, online)
            return online
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"Failed to refresh online admins: {e}", exc_info=True)
            return []
