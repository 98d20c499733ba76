"""FastAPI router for slug and random token endpoints."""
from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from handlerkit.config import get_config
from handlerkit.jsonio.service import read_json

from .slug import convert_to_slug
from .tokens import generate_random_string

router = APIRouter(prefix="/text", tags=["text"])


class SlugRequest(BaseModel):
    text: str = Field(..., description="Text to convert")


@router.post("/slug")
async def slugify(request: Request):
    """Convert text to a URL-safe slug (400 if nothing usable remains).

    The body is read with the configured JSON size cap and unknown-field
    policy.
    """
    settings = get_config().json_io
    body = await read_json(
        request,
        SlugRequest,
        max_bytes=settings.max_bytes,
        allow_unknown_fields=settings.allow_unknown_fields,
    )
    return {"slug": convert_to_slug(body.text)}


@router.get("/random")
async def random_token(length: int = Query(32, ge=0, le=1024)):
    """Generate a random token of ``length`` characters."""
    return {"token": generate_random_string(length)}
