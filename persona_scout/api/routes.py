"""
API Routes
The persona endpoint.
"""
import asyncio
import json
import traceback
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import config
from ..core.logging import api_logger
from ..core.persona import PersonaBuilder, normalize_url
from ..errors import ConfigError, InputValidationError, PersonaScoutError
from ..providers.openai_compatible import create_xai_provider
from ..tools.catalog import create_default_catalog


router = APIRouter()

DISCONNECT_POLL_SECONDS = 1.0


class ClientDisconnected(Exception):
    """The caller went away before the persona was ready."""
    pass


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def build_default_builder() -> PersonaBuilder:
    """Builder backed by the configured LLM and the real tools."""
    if not config.llm.api_key:
        raise ConfigError("Missing XAI_API_KEY environment variable")
    return PersonaBuilder(provider=create_xai_provider(), catalog=create_default_catalog())


def get_builder_factory() -> Callable[[], PersonaBuilder]:
    """Dependency; the factory runs only after the body has been validated."""
    return build_default_builder


async def run_until_disconnect(request: Request, job: Awaitable[Dict[str, Any]]) -> Dict[str, Any]:
    """Await ``job``, cancelling it (and its sub-calls) if the client disconnects."""
    task = asyncio.ensure_future(job)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


def _parse_body(body_text: str) -> Optional[Dict[str, Any]]:
    try:
        body = json.loads(body_text)
    except json.JSONDecodeError:
        return None
    return body if isinstance(body, dict) else None


@router.post("/")
async def create_persona(
    request: Request,
    builder_factory: Callable[[], PersonaBuilder] = Depends(get_builder_factory),
):
    """Build a persona from a LinkedIn and/or X profile URL"""
    log = api_logger()
    body_text = (await request.body()).decode("utf-8", errors="replace")

    body = _parse_body(body_text)
    if body is None:
        return error_response(400, "Request body must be a JSON object", bodyText=body_text)

    try:
        linkedin_url = normalize_url(body.get("linkedin_url"))
        x_url = normalize_url(body.get("x_url"))
        if not linkedin_url and not x_url:
            raise InputValidationError("Provide at least one URL (linkedin_url or x_url)")
    except InputValidationError as e:
        return error_response(400, str(e))

    try:
        builder = builder_factory()
    except ConfigError as e:
        log.error(str(e))
        return error_response(500, str(e))

    log.info("Persona request", extra={"fields": {"linkedin_url": linkedin_url, "x_url": x_url}})

    try:
        payload = await run_until_disconnect(request, builder.build(linkedin_url, x_url))
    except ClientDisconnected:
        log.warning("Client disconnected, persona job cancelled")
        return error_response(499, "Client disconnected")
    except InputValidationError as e:
        return error_response(400, str(e))
    except PersonaScoutError as e:
        log.error(f"Persona job failed: {e}")
        return _failure(e)
    except Exception as e:
        log.exception(f"Unhandled error in persona job: {e}")
        return _failure(e)

    return JSONResponse(content=payload)


def _failure(error: Exception) -> JSONResponse:
    extra = {}
    if config.server.debug:
        extra["stack"] = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return error_response(500, str(error) or "Internal error", **extra)
