"""Pydantic request bodies for API endpoints."""

from pydantic import BaseModel

from solo_trpg.models import Profile


class CreateSession(BaseModel):
    theme: str = ""


class CreateCharacter(BaseModel):
    profile: Profile
    allocation: dict[str, int] = {}


class InputBody(BaseModel):
    text: str = ""
