"""Health check, skill catalogue, and narrator settings endpoints."""

from fastapi import APIRouter, Request

from solo_trpg.characters import SKILL_CATEGORY_LABELS, SKILL_LIST, SKILL_MAX

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/skills")
async def list_skills():
    """Every skill with its base value, grouped by category."""
    return {
        "max": SKILL_MAX,
        "categories": SKILL_CATEGORY_LABELS,
        "skills": [skill._asdict() for skill in SKILL_LIST],
    }


@router.get("/settings")
async def get_settings(request: Request):
    """Active narrator settings. The API key is never returned."""
    config = request.app.state.config
    conn = config["llm_connection"]
    return {
        "narrator": config["narrator"],
        "narrator_attempts": config["narrator_attempts"],
        "llm_connection": {
            "provider_url": conn["provider_url"],
            "provider_format": conn["provider_format"],
            "model": conn["model"],
            "has_api_key": bool(conn["api_key"]),
        },
    }
