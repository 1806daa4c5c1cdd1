import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI

from solo_trpg.config import get_config
from solo_trpg.dice import Dice
from solo_trpg.narrator import build_narrator
from solo_trpg.routes import router
from solo_trpg.sessions import SessionStore

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)


def create_app(config: dict[str, Any] | None = None, dice: Dice | None = None) -> FastAPI:
    resolved = config or get_config()
    dice = dice or Dice()

    app = FastAPI(title="Solo TRPG")
    app.state.config = resolved
    app.state.dice = dice
    app.state.store = SessionStore(build_narrator(resolved), dice)
    app.include_router(router, prefix="/api")

    logger.info("narrator=%s", resolved["narrator"])
    return app
