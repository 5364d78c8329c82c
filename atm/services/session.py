"""
Persistence of the logged-in identity between CLI invocations.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from atm.core.config import settings
from atm.core.errors import NotAuthenticated
from atm.schemas.session import SessionIdentity

logger = logging.getLogger(__name__)


class FileSessionStore:
    """
    Keeps a single session as a JSON file.

    One session at a time: ``save`` overwrites whatever was there.
    """

    def __init__(self, path=None):
        self.path = Path(path or settings.SESSION_FILE).expanduser()

    def save(self, identity: SessionIdentity) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(identity.model_dump_json(), encoding="utf-8")

    def load(self) -> Optional[SessionIdentity]:
        """Return the saved identity, or None when nobody is logged in."""
        if not self.path.exists():
            return None
        try:
            return SessionIdentity.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError:
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def require(self) -> SessionIdentity:
        """Like ``load`` but raises NotAuthenticated when nobody is logged in."""
        identity = self.load()
        if identity is None:
            raise NotAuthenticated()
        return identity
