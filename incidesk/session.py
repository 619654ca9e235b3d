from __future__ import annotations

"""
Administrator session.

This is a UI gate, not authorization: the passphrase is one shared value
from the environment and the flag lives only as long as the object.
"""

import hmac
import logging

from incidesk.domain.errors import AdminRequiredError

logger = logging.getLogger(__name__)


class AdminSession:
    def __init__(self, passphrase: str) -> None:
        self._passphrase = passphrase
        self._is_admin = False

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    def login(self, entered: str) -> bool:
        ok = bool(self._passphrase) and hmac.compare_digest(
            entered.encode("utf-8"), self._passphrase.encode("utf-8")
        )
        self._is_admin = ok
        if not ok:
            logger.warning("admin login rejected")
        return ok

    def logout(self) -> None:
        self._is_admin = False

    def require_admin(self) -> None:
        if not self._is_admin:
            raise AdminRequiredError("administrator access required")
