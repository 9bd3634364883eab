"""Whole-payload change detection by canonical serialization."""

import hashlib
import json
import logging
from typing import Any, Optional

logger = logging.getLogger("job_relay.change_detector")


def canonical_json(payload: Any) -> str:
    """Serialize with stable key ordering so equal payloads compare equal."""
    return json.dumps(payload, sort_keys=True, default=str, ensure_ascii=False)


class ChangeDetector:
    """Remembers the last payload seen and reports whether a new one differs.

    The memo lives in memory only: it starts empty, so the first payload is
    always reported as changed.
    """

    def __init__(self):
        self._last: Optional[str] = None

    def has_changed(self, payload: Any) -> bool:
        serialized = canonical_json(payload)
        if serialized == self._last:
            return False
        self._last = serialized
        return True

    @property
    def fingerprint(self) -> Optional[str]:
        """SHA-256 of the remembered payload, for logs."""
        if self._last is None:
            return None
        return hashlib.sha256(self._last.encode("utf-8")).hexdigest()

    def reset(self):
        self._last = None
