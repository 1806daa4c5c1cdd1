"""In-memory session registry."""

from __future__ import annotations

import logging
import uuid

from solo_trpg.controller import TurnController
from solo_trpg.dice import Dice
from solo_trpg.models import new_session_state
from solo_trpg.narrator import Narrator

logger = logging.getLogger(__name__)


class SessionStore:
    """Maps session ids to their controllers. Lives only as long as the process."""

    def __init__(self, narrator: Narrator, dice: Dice | None = None) -> None:
        self._narrator = narrator
        self._dice = dice or Dice()
        self._controllers: dict[str, TurnController] = {}

    def create(self, theme: str = "") -> TurnController:
        session_id = uuid.uuid4().hex
        controller = TurnController(new_session_state(session_id, theme), self._narrator, self._dice)
        self._controllers[session_id] = controller
        logger.info("session %s created theme=%r", session_id, theme)
        return controller

    def get(self, session_id: str) -> TurnController:
        """Raises KeyError for an unknown id."""
        return self._controllers[session_id]

    def delete(self, session_id: str) -> None:
        if self._controllers.pop(session_id, None) is not None:
            logger.info("session %s deleted", session_id)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)
