from __future__ import annotations

import json
import logging
import shutil
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from proforma.models.user import AuthSession

log = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)


class SessionStore:
    """
    Single JSON document holding the logged-in session (token + user).
    - restored at startup, deleted on logout
    - a corrupt file is kept aside as *.corrupt.json and treated as "no session"
    - no write when the content is unchanged
    """

    def __init__(self, filepath: Union[str, Path]) -> None:
        self.filepath = Path(filepath)
        self._lock = threading.Lock()

    # ---------------- Low-level I/O ---------------- #

    def _read_raw(self) -> Optional[Dict[str, Any]]:
        try:
            with self.filepath.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            backup = self.filepath.with_suffix(".corrupt.json")
            try:
                shutil.copy2(self.filepath, backup)
            except OSError:
                log.warning("Could not back up corrupt session file %s", self.filepath)
            log.warning("Ignoring corrupt session file %s", self.filepath)
            return None
        return data if isinstance(data, dict) else None

    def _write_raw(self, data: Dict[str, Any]) -> None:
        with self._lock:
            new_dump = json.dumps(data, ensure_ascii=False, indent=2, default=_json_default)
            if self.filepath.exists():
                try:
                    if self.filepath.read_text(encoding="utf-8") == new_dump:
                        return
                except OSError:
                    pass
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            with self.filepath.open("w", encoding="utf-8") as f:
                f.write(new_dump)

    # ---------------- API ---------------- #

    def load(self) -> Optional[AuthSession]:
        raw = self._read_raw()
        if not raw:
            return None
        try:
            session = AuthSession.model_validate(raw)
        except ValidationError as e:
            log.warning("Ignoring invalid session file %s: %s", self.filepath, e)
            return None
        return session if session.is_authenticated else None

    def save(self, session: AuthSession) -> None:
        self._write_raw(session.model_dump(mode="json", by_alias=True))

    def clear(self) -> bool:
        with self._lock:
            try:
                self.filepath.unlink()
            except FileNotFoundError:
                return False
        return True
