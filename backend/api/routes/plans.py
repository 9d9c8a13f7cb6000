"""
Personalized plan API routes (mounted under /videos).
"""
import logging
from typing import Tuple

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user_id, get_storage
from api.models.requests import CreatePlanRequest
from api.models.responses import PlanResponse
from core.exceptions import ForbiddenError, NotFoundError
from core.storage import Storage
from models.video_models import PersonalizedPlan, Profile, Video
from services.analysis.plan_generator import plan_generator
from services.ingestion.youtube_fetcher import format_transcript

logger = logging.getLogger(__name__)

router = APIRouter()


def load_owned(storage: Storage, video_id: str, profile_id: str, user_id: str) -> Tuple[Video, Profile]:
    video = storage.get_video(video_id)
    if not video:
        raise NotFoundError("Video not found")
    profile = storage.get_profile(profile_id)
    if not profile:
        raise NotFoundError("Profile not found")

    if video.user_id != user_id:
        raise ForbiddenError("Access denied: You don't own this video")
    if profile.user_id != user_id:
        raise ForbiddenError("Access denied: You don't own this profile")
    return video, profile


@router.get("/{video_id}/plans/{profile_id}", response_model=PlanResponse)
def get_plan(
    video_id: str,
    profile_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    load_owned(storage, video_id, profile_id, user_id)
    plan = storage.get_personalized_plan(video_id, profile_id)
    if not plan:
        raise NotFoundError("Personalized plan not found")
    return PlanResponse.model_validate(plan)


@router.post("/{video_id}/plans", response_model=PlanResponse)
def create_plan(
    video_id: str,
    request: CreatePlanRequest,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    """Return the cached plan for (video, profile), generating it on first request."""
    video, profile = load_owned(storage, video_id, request.profile_id, user_id)

    existing = storage.get_personalized_plan(video.id, profile.id)
    if existing:
        return PlanResponse.model_validate(existing)

    logger.info(f"Generating plan for video {video.id} and profile {profile.id}")
    plan_data = plan_generator.generate_plan(
        transcript=format_transcript(video.transcript, video.transcript_data),
        summary=video.summary,
        profile_description=profile.description,
        title=video.title,
        video_duration=video.duration,
    )
    storage.create_personalized_plan(
        PersonalizedPlan(video_id=video.id, profile_id=profile.id, plan=plan_data)
    )
    # A concurrent first request may have stored its plan earlier; the first row wins
    return PlanResponse.model_validate(storage.get_personalized_plan(video.id, profile.id))
