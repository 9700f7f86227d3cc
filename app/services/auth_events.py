"""
TrackMyStartup - Auth Events

In-process publish/subscribe for authentication state changes.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Authentication state transitions."""
    SIGNED_IN = "SIGNED_IN"
    INITIAL_SESSION = "INITIAL_SESSION"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    USER_UPDATED = "USER_UPDATED"


# Events after which the signed-in user proceeds to the post-login destination
PROCEED_EVENTS = {AuthEvent.SIGNED_IN, AuthEvent.INITIAL_SESSION}


AuthListener = Callable[[AuthEvent, Dict[str, Any]], None]


class AuthEventBroker:
    """
    Fan auth events out to listeners.

    Listeners are called synchronously in subscription order. A failing
    listener is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; call the returned function to unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: AuthEvent, payload: Optional[Dict[str, Any]] = None) -> None:
        payload = dict(payload or {})
        payload["proceed"] = event in PROCEED_EVENTS
        logger.info(f"Auth event {event.value} for user {payload.get('user_id')}")

        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception(f"Auth listener failed on {event.value}")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


auth_events = AuthEventBroker()
