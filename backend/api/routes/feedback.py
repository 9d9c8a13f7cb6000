"""
Feedback API route.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_optional_user_id, get_storage
from api.models.requests import FeedbackRequest
from api.models.responses import SuccessResponse
from core.storage import Storage
from models.video_models import Feedback

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SuccessResponse)
def submit_feedback(
    request: FeedbackRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    storage: Storage = Depends(get_storage),
):
    """Store feedback, tied to the caller when signed in."""
    feedback = storage.create_feedback(Feedback(
        message=request.message,
        name=request.name,
        email=request.email,
        user_id=user_id,
    ))
    logger.info(f"Feedback {feedback.id} received")
    return SuccessResponse(message="Feedback submitted successfully")
