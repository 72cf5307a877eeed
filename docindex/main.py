import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docindex.api.router import api_router
from docindex.core.config import settings
from docindex.core.exceptions import SearchIndexError
from docindex.db.session import get_async_session, init_db
from docindex.services.documents import DocumentStore
from docindex.services.ingestion.service import recover_stale_sessions
from docindex.services.search.meilisearch import get_meili_client

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="docindex API",
    description="Local document ingestion and hybrid search",
    version="0.1.0",
)

# Set up CORS
origins = (
    [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
    if "," in settings.CORS_ORIGINS
    else [settings.CORS_ORIGINS]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.on_event("startup")
async def startup_db_client():
    """Create the schema, seed categories and fail scans a crash left running."""
    await init_db()
    async with get_async_session() as db:
        await DocumentStore(db).seed_categories()
    await recover_stale_sessions()

    index = await get_meili_client()
    try:
        await index.init_index()
    except SearchIndexError as e:
        logger.warning(f"Search index unavailable at startup, search will fall back to semantic: {e}")
    logger.info("Startup tasks completed")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("docindex.main:app", host="0.0.0.0", port=8000, reload=True)
