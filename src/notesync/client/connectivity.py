"""
Connectivity Signal

Holds the online/offline state reported by the platform and notifies
listeners on transitions. Offline is a precondition failure for sync;
going back online is a sync trigger.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[bool], None]


class ConnectivityMonitor:
    """Last known connectivity state plus transition listeners."""

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        """Report a new state. Listeners only hear about actual transitions."""
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception:
                logger.exception("Connectivity listener failed")

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
