"""
Video analysis and chat API routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from api.dependencies import analysis_rate_limit, get_current_user_id, get_optional_user_id, get_storage
from api.models.requests import AnalyzeVideoRequest, ChatRequest, ReanalyzeVideoRequest
from api.models.responses import (
    ChatMessageResponse,
    QuickQuestionsResponse,
    SuccessResponse,
    VideoResponse,
)
from core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from core.pipeline import pipeline
from core.storage import Storage
from models.video_models import ChatMessage, Video
from services.analysis.summarizer import summarizer
from services.chat.response_generator import response_generator
from services.ingestion.youtube_fetcher import format_transcript

logger = logging.getLogger(__name__)

router = APIRouter()


def find_video(storage: Storage, video_id: str, user_id: Optional[str] = None) -> Video:
    """
    Resolve a platform ID or internal ID to a video.

    Several users may have analyzed the same platform video, so the caller's
    own copy wins, then an internal ID match, then an anonymous copy, then
    any copy.
    """
    video = (
        (user_id and storage.get_user_video(user_id, video_id))
        or storage.get_video(video_id)
        or storage.get_user_video(None, video_id)
        or storage.get_video_by_youtube_id(video_id)
    )
    if not video:
        raise NotFoundError("Video not found")
    return video


def check_chat_access(video: Video, user_id: str):
    # Unowned (anonymous) analyses are open to every signed-in user
    if video.user_id and video.user_id != user_id:
        raise ForbiddenError("Access denied")


@router.post("/analyze", response_model=VideoResponse, dependencies=[Depends(analysis_rate_limit)])
def analyze_video(
    request: AnalyzeVideoRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    storage: Storage = Depends(get_storage),
):
    """Fetch, summarize and store a video, or return the caller's existing analysis."""
    return VideoResponse.model_validate(pipeline.analyze(request.url, user_id, storage))


@router.post("/re-analyze", response_model=VideoResponse, dependencies=[Depends(analysis_rate_limit)])
def reanalyze_video(
    request: ReanalyzeVideoRequest,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    return VideoResponse.model_validate(pipeline.reanalyze(request.youtube_id, user_id, storage))


@router.get("", response_model=List[VideoResponse])
def list_videos(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    """The caller's videos, newest first."""
    return [VideoResponse.model_validate(v) for v in storage.list_user_videos(user_id)]


@router.get("/id/{video_id}", response_model=VideoResponse)
def get_video_by_id(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    video = storage.get_video(video_id)
    if not video:
        raise NotFoundError("Video not found")
    if video.user_id != user_id:
        raise ForbiddenError("Access denied")
    return VideoResponse.model_validate(video)


@router.get("/{youtube_id}", response_model=VideoResponse)
def get_video(youtube_id: str, storage: Storage = Depends(get_storage)):
    video = storage.get_video_by_youtube_id(youtube_id)
    if not video:
        raise NotFoundError("Video not found")
    return VideoResponse.model_validate(video)


@router.delete("/{video_id}", response_model=SuccessResponse)
def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    """Delete an owned video together with its chat history and plans."""
    video = find_video(storage, video_id, user_id)
    if video.user_id != user_id:
        raise ForbiddenError("Access denied")

    if not storage.delete_video(video.id):
        raise NotFoundError("Video not found")
    logger.info(f"User {user_id} deleted video {video.id}")
    return SuccessResponse(message="Video deleted successfully")


@router.post("/{video_id}/chat", response_model=ChatMessageResponse)
def chat_about_video(
    video_id: str,
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    """
    Answer a question about a video and store the turn.

    The canned quick-action messages run the matching quick action instead
    of a free-form chat turn.
    """
    if not request.message or not request.message.strip():
        raise InvalidInputError("Message is required")

    video = find_video(storage, video_id, user_id)
    check_chat_access(video, user_id)

    result = response_generator.respond(storage, video, request.message)
    message = storage.create_chat_message(ChatMessage(
        video_id=video.id,
        message=request.message,
        response=result.answer,
        timestamps=result.timestamps,
    ))
    return ChatMessageResponse.model_validate(message)


@router.get("/{video_id}/chat", response_model=List[ChatMessageResponse])
def get_chat_messages(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    video = find_video(storage, video_id, user_id)
    check_chat_access(video, user_id)
    return [ChatMessageResponse.model_validate(m) for m in storage.list_chat_messages(video.id)]


@router.get("/{youtube_id}/quick-questions", response_model=QuickQuestionsResponse)
def get_quick_questions(youtube_id: str, storage: Storage = Depends(get_storage)):
    """Four suggested questions for the video."""
    video = find_video(storage, youtube_id)
    if not video.transcript:
        raise InvalidInputError("Video transcript not available")

    questions = summarizer.generate_quick_questions(
        format_transcript(video.transcript, video.transcript_data),
        video.title,
    )
    return QuickQuestionsResponse(questions=questions)
