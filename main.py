"""
Persona Scout - Main Entry Point
FastAPI application exposing the persona endpoint.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from persona_scout.api.routes import router
from persona_scout.config import config
from persona_scout.core.logging import configure_logging, api_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    configure_logging(
        log_dir=config.logging.log_dir,
        log_level=config.logging.level,
        max_days=config.logging.max_days,
        json_format=config.logging.json_format,
        console_colors=config.logging.console_colors,
        timezone=config.logging.timezone,
    )
    log = api_logger()
    log.info(f"Starting Persona Scout on port {config.server.port}")
    log.info(f"LLM: {config.llm.provider}/{config.llm.model}, max turns {config.agent.max_turns}")
    if not config.llm.api_key:
        log.warning("XAI_API_KEY is not set; persona requests will fail")

    yield

    log.info("Shutting down Persona Scout")


app = FastAPI(
    title="Persona Scout",
    description="Builds a persona document from LinkedIn and X profile URLs",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (405, 404) use the same ``{error}`` body as the endpoint"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


app.include_router(router)


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False
    )
