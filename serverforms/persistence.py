"""
Per-user answer record persistence.

One JSON file per user identity, merged across forms.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from serverforms.errors import PersistenceError

logger = logging.getLogger(__name__)

# Top-level key holding the last known display name in every record
DISPLAY_NAME_KEY = "userDisplayName"


class AnswerStore:
    """
    Manages per-user answer records.

    Layout:
        mods/FormAnswers/
            069a79f4-44e9-4726-a5be-fca90e38aaf5.json
            ...

    Record shape:
        {
            "userDisplayName": "Bob",
            "<form display name>": {"<question id>": "<answer>", ...},
            ...
        }

    Design:
    - Read-modify-write per save (other forms are preserved)
    - Writes go to a temp file first, then os.replace() over the record
    - No locking: two saves for the same user can race
    """

    def __init__(self, base_dir: str = "mods/FormAnswers"):
        """
        Initialize answer store.

        Args:
            base_dir: Directory holding one record file per user
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"AnswerStore initialized: {self.base_dir}")

    def record_path(self, user_identity: str) -> Path:
        """
        Record file for an identity.

        Raises:
            PersistenceError: If the identity would place the file outside base_dir
        """
        path = self.base_dir / f"{user_identity}.json"
        if path.resolve().parent != self.base_dir.resolve():
            raise PersistenceError(f"Invalid user identity for answers file: {user_identity!r}")
        return path

    def load_record(self, user_identity: str) -> Optional[Dict[str, Any]]:
        """
        Load a user's full answer record.

        Args:
            user_identity: Stable user identity

        Returns:
            Record dict, or None if the user has no record yet

        Raises:
            PersistenceError: If the file exists but cannot be read or decoded
        """
        path = self.record_path(user_identity)
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read answers file for {user_identity}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Answers file for {user_identity} is not a JSON object")
        return data

    def has_completed(self, user_identity: str, display_name: str) -> bool:
        """
        Check if the user already has a saved response for a form.

        Fails open: a read error is logged and treated as "no prior data".

        Args:
            user_identity: Stable user identity
            display_name: Form display name (record key)

        Returns:
            bool: True if the record contains the form
        """
        try:
            record = self.load_record(user_identity)
        except PersistenceError as e:
            logger.error(f"Failed to check existing responses for {user_identity}: {e}")
            return False

        if record is None:
            return False
        return display_name in record

    def save(self, user_identity: str, user_display_name: str,
             display_name: str, answers: Dict[str, str]) -> str:
        """
        Merge one form's answers into the user's record.

        Args:
            user_identity: Stable user identity (file name)
            user_display_name: Current display name, overwrites the stored one
            display_name: Form display name (record key)
            answers: Question id -> answer text

        Returns:
            str: Absolute path of the written record

        Raises:
            PersistenceError: If the existing record cannot be read (it is left
                untouched rather than overwritten) or the write fails
        """
        record = self.load_record(user_identity) or {}

        record[DISPLAY_NAME_KEY] = user_display_name
        record[display_name] = dict(answers)

        path = self.record_path(user_identity)
        self._write_atomic(path, record)

        abs_path = str(path.absolute())
        logger.info(f"Saved answers for {user_identity} to {abs_path}")
        return abs_path

    def list_known_display_names(self) -> List[str]:
        """
        Display names stored in every record (for command suggestions).

        Unreadable files are logged and skipped.

        Returns:
            list[str]: Display names, sorted by file name
        """
        names = []
        for path in sorted(self.base_dir.glob("*.json")):
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to read player name from file: {path.name}: {e}")
                continue

            if isinstance(data, dict) and isinstance(data.get(DISPLAY_NAME_KEY), str):
                names.append(data[DISPLAY_NAME_KEY])
        return names

    def list_completed_forms(self, user_identity: str) -> List[str]:
        """
        Form display names in the user's record, in the order they were first saved.

        Raises:
            PersistenceError: If the record cannot be read
        """
        record = self.load_record(user_identity)
        if record is None:
            return []
        return [key for key in record if key != DISPLAY_NAME_KEY]

    def _write_atomic(self, path: Path, record: Dict[str, Any]):
        """Write record to a sibling temp file and rename it over the target"""
        try:
            fd, tmp_name = tempfile.mkstemp(dir=str(self.base_dir), suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(record, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to save answers to {path}: {e}") from e
