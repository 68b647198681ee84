"""Document and suggestion read endpoints for the client's canvas."""

from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Query

from chanswer.auth.dependencies import get_current_user
from chanswer.auth.schemas import User
from chanswer.db.dependencies import get_chat_store
from chanswer.db.documents.schemas import DocumentRecord, SuggestionListResponse
from chanswer.db.store import ChatStore

router = APIRouter(tags=["Documents"])


async def _get_owned_document(
    document_id: str, user: User, store: ChatStore
) -> DocumentRecord:
    document = await store.get_document(document_id)
    if document is None or document.user_id != user.id:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Not Found")
    return document


@router.get("/document", response_model=DocumentRecord, response_model_by_alias=True)
async def get_document(
    id: str = Query(..., description="Document UUID"),
    current_user: User = Depends(get_current_user),
    store: ChatStore = Depends(get_chat_store),
) -> DocumentRecord:
    """
    Get one of the caller's documents.

    Raises:
        HTTPException: 404 if the document is unknown or owned by someone else
    """
    return await _get_owned_document(id, current_user, store)


@router.get(
    "/suggestions",
    response_model=SuggestionListResponse,
    response_model_by_alias=True,
)
async def get_suggestions(
    document_id: str = Query(..., alias="documentId", description="Document UUID"),
    current_user: User = Depends(get_current_user),
    store: ChatStore = Depends(get_chat_store),
) -> SuggestionListResponse:
    """Get the suggestions made for one of the caller's documents."""
    await _get_owned_document(document_id, current_user, store)
    suggestions = await store.get_suggestions(document_id)
    return SuggestionListResponse(suggestions=suggestions)
