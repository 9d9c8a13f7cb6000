"""
Profile API routes.
"""
import re
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user_id, get_storage
from api.models.requests import ProfileCreateRequest, ProfileUpdateRequest
from api.models.responses import ProfileResponse, SuccessResponse
from core.exceptions import InvalidInputError, NotFoundError
from core.storage import Storage
from models.video_models import Profile

router = APIRouter()

MAX_DERIVED_NAME = 50


def derive_profile_name(description: str) -> str:
    """First clause of the description, at most 50 characters."""
    first_clause = re.split(r"[.,;!?\n]", description.strip(), maxsplit=1)[0].strip()
    return (first_clause or description.strip())[:MAX_DERIVED_NAME].strip()


def get_owned_profile(storage: Storage, profile_id: str, user_id: str) -> Profile:
    profile = storage.get_profile(profile_id)
    # Other users' profiles are reported as missing
    if not profile or profile.user_id != user_id:
        raise NotFoundError("Profile not found or access denied")
    return profile


@router.get("", response_model=List[ProfileResponse])
def list_profiles(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    return [ProfileResponse.model_validate(p) for p in storage.list_user_profiles(user_id)]


@router.post("", response_model=ProfileResponse)
def create_profile(
    request: ProfileCreateRequest,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    description = request.description.strip()
    if not description:
        raise InvalidInputError("Profile description is required")

    name = (request.name or "").strip() or derive_profile_name(description)
    profile = storage.create_profile(Profile(user_id=user_id, name=name, description=description))
    return ProfileResponse.model_validate(profile)


@router.patch("/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: str,
    request: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    updates = {
        key: value.strip()
        for key, value in request.model_dump(exclude_none=True).items()
    }
    if any(not value for value in updates.values()):
        raise InvalidInputError("Profile fields cannot be empty")
    if not updates:
        raise InvalidInputError("At least one field (name or description) must be provided")

    get_owned_profile(storage, profile_id, user_id)
    updated = storage.update_profile(profile_id, updates)
    if not updated:
        raise NotFoundError("Profile not found or access denied")
    return ProfileResponse.model_validate(updated)


@router.delete("/{profile_id}", response_model=SuccessResponse)
def delete_profile(
    profile_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    """Delete an owned profile and its personalized plans."""
    get_owned_profile(storage, profile_id, user_id)
    storage.delete_profile(profile_id)
    return SuccessResponse(message="Profile deleted successfully")
