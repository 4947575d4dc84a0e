"""
Memorial Wall - FastAPI Backend
"""
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import asyncpg
import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

# Add backend to path for package imports
sys.path.insert(0, str(Path(__file__).parent))

from config import get_settings
from api.memorials import router as memorials_router
from services.app_services import create_app_services
from services.enrichment_service import LookupFailed
from services.memorial_extractor import ExtractionError
from services.search_client import SearchError
from services.storage_client import StorageError

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared clients on startup, close them on shutdown"""
    app.state.services = await create_app_services(settings)
    try:
        yield
    finally:
        await app.state.services.close()
        logger.info("👋 Services closed")


app = FastAPI(
    title="Memorial Wall",
    description="Memorial records with AI-assisted lookup and image persistence",
    version="1.0.0",
    lifespan=lifespan
)

# Enable CORS for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(memorials_router)


# Every error leaves as {"error": message}
def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    summary = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors
    ) or "Invalid request"
    return _error_response(422, summary)


@app.exception_handler(StorageError)
@app.exception_handler(SearchError)
@app.exception_handler(ExtractionError)
@app.exception_handler(LookupFailed)
@app.exception_handler(asyncpg.PostgresError)
@app.exception_handler(httpx.HTTPError)
async def upstream_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ {request.method} {request.url.path} failed: {exc}")
    return _error_response(500, str(exc) or "An unknown error occurred")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, str(exc) or "An unknown error occurred")


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
