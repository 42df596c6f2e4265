"""
Word Orbit - FastAPI Backend
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.words import router as words_router, word_error_handler
from repositories import close_db_pool
from services.errors import WordError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(name)s] %(levelname)s: %(message)s'
)
logger = logging.getLogger('word-orbit')


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Pool is created lazily by the first request
    logger.info("Word orbit API ready")
    yield
    await close_db_pool()


app = FastAPI(
    title="Word Orbit",
    description="Visitors add words to concentric rings around a shared anchor",
    version="1.0.0",
    lifespan=lifespan,
)

# Enable CORS for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Failures while building the word service (e.g. store unreachable)
app.add_exception_handler(WordError, word_error_handler)

# Words at /words (frontend) and /api/words
app.include_router(words_router)
app.include_router(words_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
