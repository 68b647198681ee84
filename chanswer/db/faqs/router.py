"""FAQ listing endpoint used by the client for suggested questions."""

from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException

from chanswer.db.dependencies import get_chat_store
from chanswer.db.faqs.schemas import FaqListResponse
from chanswer.db.store import ChatStore
from chanswer.utils.logger import logger

router = APIRouter(prefix="/faq", tags=["FAQ"])


@router.get("", response_model=FaqListResponse)
async def list_faqs(store: ChatStore = Depends(get_chat_store)) -> FaqListResponse:
    """
    List known questions with their categories.

    Raises:
        HTTPException: 500 if the store cannot be read
    """
    try:
        suggestions = await store.list_faq_suggestions()
    except Exception as e:
        logger.error("Failed to fetch FAQs", error=str(e))
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to fetch FAQs",
        ) from e
    return FaqListResponse(faqs=suggestions)
