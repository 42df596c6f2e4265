"""
Words API
=========

GET    /words                          - All words with orbit positions
POST   /words  (multipart form)        - Add a word (term, username, clientToken, avatar?)
DELETE /words?id=...&clientToken=...   - Remove your own word

Errors are returned as {"error": "..."} with the status of the failure;
errors raised while building the service go through word_error_handler.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from config import get_settings
from repositories import WordRepository, get_db_pool
from services.blob_store import BlobStore
from services.errors import WordError
from services.word_service import AvatarUpload, WordService, dependency_errors
from models.api.word import (
    DeleteResponse,
    ErrorResponse,
    WordCreatedResponse,
    WordListResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Words"])


async def get_word_service() -> WordService:
    """Build a WordService on the shared pool (one per request, no shared state)."""
    settings = get_settings()
    with dependency_errors("Could not connect to the word store"):
        pool = await get_db_pool()
    return WordService.from_settings(
        settings,
        repository=WordRepository(pool),
        blob_store=BlobStore.from_settings(settings),
    )


def error_response(error: WordError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(error=error.message).model_dump(),
    )


@router.get("/words", response_model=WordListResponse, responses={500: {"model": ErrorResponse}})
async def list_words(
    background_tasks: BackgroundTasks,
    service: WordService = Depends(get_word_service),
):
    """
    Every word with its (layerIndex, slotIndex), angle and radius.

    Words stored without a position are placed here, oldest first; the new
    positions are persisted after the response is sent.
    """
    try:
        result = await service.listing()
    except WordError as e:
        return error_response(e)

    if result.pending:
        background_tasks.add_task(service.write_back, result.pending)

    words = [service.present(w).model_dump(mode="json", by_alias=True) for w in result.words]
    return JSONResponse(content={"words": words})


@router.post(
    "/words",
    status_code=201,
    response_model=WordCreatedResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_word(
    term: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    clientToken: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    service: WordService = Depends(get_word_service),
):
    """Add a word at the lowest free orbit position."""
    upload = None
    if avatar is not None and avatar.filename:
        # limit + 1 bytes at most; anything longer is oversize
        data = await avatar.read(service.max_avatar_bytes + 1)
        upload = AvatarUpload(
            data=data,
            content_type=avatar.content_type or "",
            filename=avatar.filename,
        )

    try:
        word = await service.contribute(term, username, clientToken, avatar=upload)
    except WordError as e:
        return error_response(e)

    payload = service.present(word).model_dump(mode="json", by_alias=True)
    return JSONResponse(status_code=201, content={"word": payload})


@router.delete(
    "/words",
    response_model=DeleteResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def delete_word(
    id: Optional[str] = None,
    clientToken: Optional[str] = None,
    service: WordService = Depends(get_word_service),
):
    """Remove a word; only the browser token that added it may do so."""
    try:
        await service.delete(id, clientToken)
    except WordError as e:
        return error_response(e)

    return DeleteResponse(success=True)


async def word_error_handler(request: Request, exc: WordError) -> JSONResponse:
    """App-level handler for WordErrors raised outside the route bodies"""
    return error_response(exc)
