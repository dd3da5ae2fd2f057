"""
Append-only audit log of SOS dispatch attempts.

The log is a single JSON array on disk. Every append reads the whole array,
adds one entry and rewrites the file, so appends for the same path are
serialized behind one lock per process.
"""
import json
import logging
import os
import tempfile
import threading
from datetime import datetime

logger = logging.getLogger(__name__)

_path_locks = {}
_path_locks_guard = threading.Lock()


def _lock_for(path):
    key = os.path.abspath(path)
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


class AlertLog:
    def __init__(self, path):
        self.path = path
        self._lock = _lock_for(path)

    def entries(self):
        """Returns every logged entry, oldest first. An unreadable log reads as empty."""
        with self._lock:
            try:
                return self._read()
            except OSError as e:
                logger.warning("Could not read alert log %s: %s", self.path, e)
                return []

    def append(self, entry):
        """
        Appends one entry (a dict) and rewrites the file.
        Returns False if the log could not be read or written; the entry is
        then lost but the existing file is left untouched.
        """
        with self._lock:
            try:
                logs = self._read()
            except OSError as e:
                logger.warning("Could not read alert log %s, not appending: %s", self.path, e)
                return False
            logs.append(entry)
            try:
                self._write(logs)
            except OSError as e:
                logger.warning("Could not write alert log %s: %s", self.path, e)
                return False
        return True

    # --------------------------
    # FILE HANDLING
    # --------------------------

    def _read(self):
        """Raises OSError if the file exists but cannot be read or set aside."""
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            self._quarantine(f"unreadable content ({e})")
            return []

        if not isinstance(data, list):
            self._quarantine("top-level value is not an array")
            return []
        return data

    def _backup_path(self):
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        backup = f"{self.path}.corrupt-{stamp}"
        n = 1
        while os.path.exists(backup):
            backup = f"{self.path}.corrupt-{stamp}-{n}"
            n += 1
        return backup

    def _quarantine(self, reason):
        backup = self._backup_path()
        try:
            os.replace(self.path, backup)
            logger.warning("Alert log %s is corrupt (%s); moved to %s and starting empty", self.path, reason, backup)
        except OSError as e:
            logger.warning("Alert log %s is corrupt (%s) and could not be moved aside: %s", self.path, reason, e)
            raise

    def _write(self, logs):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".alert-log-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(logs, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
