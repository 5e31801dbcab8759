import threading
from datetime import datetime, timedelta
from typing import Dict, Optional

from cockpit.core.config import SESSION_EXPIRE_HOURS


class SessionRegistry:
    """In-process record of logged-in identities, keyed by profile id."""

    def __init__(self):
        self._sessions: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def start(self, user_id: str, email: str, ip: Optional[str] = None, hours: float = None) -> dict:
        now = datetime.utcnow()
        session = {
            "user_id": user_id,
            "email": email,
            "ip": ip,
            "login_time": now,
            "expiry": now + timedelta(hours=hours if hours is not None else SESSION_EXPIRE_HOURS),
        }
        with self._lock:
            self._sessions[user_id] = session
        return session

    def get(self, user_id: str) -> Optional[dict]:
        """Return the live session for `user_id`, dropping it if expired."""
        if not user_id:
            return None
        with self._lock:
            session = self._sessions.get(user_id)
            if not session:
                return None
            if datetime.utcnow() > session["expiry"]:
                del self._sessions[user_id]
                return None
            return session

    def is_active(self, user_id: str) -> bool:
        return self.get(user_id) is not None

    def end(self, user_id: str):
        with self._lock:
            self._sessions.pop(user_id, None)

    def clear(self):
        with self._lock:
            self._sessions.clear()


active_sessions = SessionRegistry()
