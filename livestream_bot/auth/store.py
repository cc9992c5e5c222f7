"""Cookie persistence for the session file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..models.session import Cookie

logger = logging.getLogger(__name__)


class SessionStore:
    """Reads and writes the persisted cookie list.

    Writes go through a temp file in the same directory and ``os.replace`` so
    a crash never leaves a half-written session behind.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[list[Cookie]]:
        """Return the stored cookies, or None when missing, unreadable or malformed."""
        if not self.path.is_file():
            logger.info(f"No session file at {self.path}")
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read session file {self.path}: {e}")
            return None
        if not isinstance(raw, list):
            logger.warning(f"Session file {self.path} does not hold a cookie list")
            return None
        try:
            return [Cookie.model_validate(item) for item in raw]
        except ValidationError as e:
            logger.warning(f"Session file {self.path} has malformed cookies: {e}")
            return None

    def save(self, cookies: list[Cookie]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            [c.model_dump(by_alias=True, exclude_none=True) for c in cookies],
            indent=2,
            ensure_ascii=False,
        )
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def delete(self):
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
