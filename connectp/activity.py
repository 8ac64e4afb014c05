"""
User activity events.

Each event is an `ActivityKind` plus a small payload. Handlers are looked up
in `HANDLERS`, which must cover every kind; `record_activity` never branches
on strings.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional
from . import core

logger = logging.getLogger('connectp.activity')


class ActivityKind(Enum):
    USER_SIGNED_UP = 'user_signed_up'
    USER_LOGGED_IN = 'user_logged_in'
    PROFILE_ONBOARDED = 'profile_onboarded'
    FRIEND_REQUEST_SENT = 'friend_request_sent'
    FRIEND_REQUEST_ACCEPTED = 'friend_request_accepted'


def _counting(counter) -> Callable[[int, Dict[str, Any]], None]:
    def handle(user_id: int, data: Dict[str, Any]):
        counter.inc()
    return handle


HANDLERS: Dict[ActivityKind, Callable[[int, Dict[str, Any]], None]] = {
    ActivityKind.USER_SIGNED_UP: _counting(core.SIGNUPS),
    ActivityKind.USER_LOGGED_IN: _counting(core.LOGINS),
    ActivityKind.PROFILE_ONBOARDED: _counting(core.ONBOARDINGS),
    ActivityKind.FRIEND_REQUEST_SENT: _counting(core.FRIEND_REQUESTS_SENT),
    ActivityKind.FRIEND_REQUEST_ACCEPTED: _counting(core.FRIEND_REQUESTS_ACCEPTED),
}

_unhandled = set(ActivityKind) - set(HANDLERS)
if _unhandled:
    raise KeyError(f'no activity handler for {sorted(k.value for k in _unhandled)}')


def record_activity(user_id: int, kind: ActivityKind, data: Optional[Dict[str, Any]] = None):
    data = data or {}
    HANDLERS[kind](user_id, data)
    logger.info({'msg': 'activity', 'kind': kind.value, 'user_id': user_id, **data})
