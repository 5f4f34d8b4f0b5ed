"""
Identity Resolver - display name <-> stable identity

Backed by a JSON user cache ([{"name": ..., "uuid": ...}, ...]) that is
updated whenever a player joins. Display names may change; the uuid never
does, so answer records and sessions are keyed by uuid.
"""

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional

from serverforms.errors import PlayerNotFound

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Maps player names to UUID strings"""

    def __init__(self, cache_path: str = "usercache.json"):
        """
        Args:
            cache_path: User cache JSON file (created on first remember())
        """
        self.cache_path = Path(cache_path)
        self._by_uuid: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._load()

    def _load(self):
        if not self.cache_path.exists():
            return
        try:
            with open(self.cache_path, 'r', encoding='utf-8') as f:
                entries = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read user cache {self.cache_path}: {e}")
            return

        for entry in entries if isinstance(entries, list) else []:
            if isinstance(entry, dict) and entry.get("uuid") and entry.get("name"):
                self._by_uuid[str(entry["uuid"])] = str(entry["name"])
        logger.info(f"Loaded {len(self._by_uuid)} user cache entries")

    def _save(self):
        entries = [{"name": name, "uuid": uid} for uid, name in self._by_uuid.items()]
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, 'w', encoding='utf-8') as f:
                json.dump(entries, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write user cache {self.cache_path}: {e}")

    def remember(self, name: str, user_uuid: Optional[str] = None) -> str:
        """
        Record a player join.

        Args:
            name: Current display name
            user_uuid: Known identity; when None the existing identity for the
                name is reused, or a new UUID4 is issued

        Returns:
            str: The player's identity
        """
        with self._lock:
            if user_uuid is None:
                user_uuid = self._find(name) or str(uuid.uuid4())

            previous = self._by_uuid.get(user_uuid)
            if previous != name:
                if previous is not None:
                    logger.info(f"Player {user_uuid} renamed: {previous} -> {name}")
                self._by_uuid[user_uuid] = name
                self._save()
            return user_uuid

    def resolve(self, name: str) -> str:
        """
        Identity for a display name (case-insensitive).

        Raises:
            PlayerNotFound: If no player with that name has joined
        """
        with self._lock:
            found = self._find(name)
        if found is None:
            raise PlayerNotFound(name)
        return found

    def name_of(self, user_uuid: str) -> Optional[str]:
        with self._lock:
            return self._by_uuid.get(user_uuid)

    def known_names(self) -> List[str]:
        with self._lock:
            return sorted(self._by_uuid.values())

    def _find(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for uid, known in self._by_uuid.items():
            if known.lower() == lowered:
                return uid
        return None
