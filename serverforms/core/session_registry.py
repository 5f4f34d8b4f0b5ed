"""
Session Registry - at most one active FormSession per user identity

Owned by the SessionEngine and injected, never a module global.
A lock guards the mapping because the HTTP surface serves requests from
several threads.
"""

import logging
import threading
from typing import Dict, List, Optional

from serverforms.core.form_session import FormSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps user identity -> active FormSession"""

    def __init__(self):
        self._sessions: Dict[str, FormSession] = {}
        self._lock = threading.Lock()

    def try_begin(self, user_identity: str, session: FormSession) -> bool:
        """
        Register session iff the user has none.

        Returns:
            bool: False (and no change) if a session is already registered
        """
        with self._lock:
            if user_identity in self._sessions:
                return False
            self._sessions[user_identity] = session
        logger.debug(f"Session registered for {user_identity} ({session.form_name})")
        return True

    def end(self, user_identity: str):
        """Remove the user's session; no-op if there is none"""
        with self._lock:
            self._sessions.pop(user_identity, None)

    def active_session(self, user_identity: str) -> Optional[FormSession]:
        with self._lock:
            return self._sessions.get(user_identity)

    def active_identities(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def __contains__(self, user_identity):
        with self._lock:
            return user_identity in self._sessions
