"""
Server entry point: FastAPI app exposing the privacy report.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator
from urllib import parse

import dotenv
import fastapi
import uvicorn
from fastapi.middleware import cors
from starlette import responses

from xereta import __version__, config
from xereta.pipeline import analysis as analysis_pipeline
from xereta.tracking import domains
from xereta.utils import logger

dotenv.load_dotenv()

log = logger.create_logger("Server")


@contextlib.asynccontextmanager
async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None]:
    settings = config.get_settings()
    log.section("Xereta Server Started")
    log.info("Environment", {"env": settings.environment, "headless": settings.headless})
    yield


app = fastapi.FastAPI(title="Xereta", version=__version__, lifespan=lifespan)

app.add_middleware(
    cors.CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# ============================================================================
# API Routes
# ============================================================================


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.get("/api/score")
async def score_endpoint(
    url: str = fastapi.Query(..., description="The URL to analyze"),
) -> responses.JSONResponse:
    """Load *url* and return its privacy report with camelCase keys."""
    if domains.extract_host(url) is None or parse.urlsplit(url).scheme not in ("http", "https"):
        raise fastapi.HTTPException(status_code=400, detail="url must be an absolute http(s) URL")

    log.info("Incoming analysis request", {"url": url})
    try:
        report = await analysis_pipeline.analyze_url(url)
    except analysis_pipeline.AnalysisError as exc:
        raise fastapi.HTTPException(status_code=502, detail=str(exc)) from exc
    return responses.JSONResponse(report.to_wire())


def main() -> None:
    """Run the API server with uvicorn."""
    settings = config.get_settings()
    log.success(f"Server listening on {settings.host}:{settings.port}")
    uvicorn.run(
        "xereta.app:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
