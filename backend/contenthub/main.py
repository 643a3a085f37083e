from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
import logging

from .core.errors import ContentHubError
from .core.settings import settings
from .routers import documents, files
from .db.mongo import connect, close

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Productivity Hub Content API",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(files.router)
app.include_router(documents.router)


@app.exception_handler(ContentHubError)
async def content_hub_error_handler(request: Request, exc: ContentHubError):
    """Domain errors become client/server responses with a plain detail message."""
    if exc.status_code >= 500:
        logger.error("request_failed path=%s error=%s", request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.on_event("startup")
async def startup():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    await connect()

@app.on_event("shutdown")
async def shutdown():
    await close()

@app.get("/")
async def root():
    return {
        "message": "Content API running",
        "version": app.version,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
