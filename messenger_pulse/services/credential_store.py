"""
File-backed persistence for the page session.

The file holds a JSON object; the session lives under a single fixed key so
other entries written to the same file are left alone.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from messenger_pulse.config.constants import CREDENTIAL_STORAGE_KEY
from messenger_pulse.models.session import PageSession
from messenger_pulse.utils.logger import get_logger

logger = get_logger(__name__)


class CredentialStore:
    """Load, save and clear the persisted ``PageSession``."""

    def __init__(self, path: Union[str, Path], key: str = CREDENTIAL_STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Credential store unreadable", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Credential store is not a JSON object", path=str(self.path))
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def load(self) -> Optional[PageSession]:
        """Return the stored session, or None when absent or corrupt."""
        raw = self._read().get(self.key)
        if raw is None:
            return None
        try:
            return PageSession.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(
                "Stored session is invalid, ignoring",
                path=str(self.path),
                errors=e.error_count()
            )
            return None

    def save(self, session: PageSession) -> None:
        data = self._read()
        data[self.key] = session.model_dump(by_alias=True)
        self._write(data)
        logger.debug("Session persisted", page_id=session.page_id)

    def clear(self) -> None:
        data = self._read()
        if self.key not in data:
            return
        del data[self.key]
        self._write(data)
        logger.debug("Session cleared", path=str(self.path))
