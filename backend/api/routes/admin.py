"""
Admin API routes for prompt configurations.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_storage, require_admin
from api.models.requests import PromptConfigCreateRequest, PromptConfigUpdateRequest
from api.models.responses import PromptConfigResponse, SuccessResponse
from core.exceptions import InvalidInputError, NotFoundError
from core.storage import Storage
from models.video_models import PromptConfig

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

CONFIG_TYPES = ("chat", "summary", "quick_action")


@router.get("/prompt-configs", response_model=List[PromptConfigResponse])
def list_prompt_configs(
    config_type: Optional[str] = Query(None, alias="type"),
    storage: Storage = Depends(get_storage),
):
    """All configs, or those of one type. Unknown types list everything."""
    if config_type not in CONFIG_TYPES:
        config_type = None
    return [PromptConfigResponse.model_validate(c) for c in storage.list_prompt_configs(config_type)]


@router.get("/prompt-configs/active", response_model=Optional[PromptConfigResponse])
def get_active_prompt_config(
    config_type: str = Query("chat", alias="type"),
    quick_action_type: Optional[str] = Query(None, alias="quickActionType"),
    storage: Storage = Depends(get_storage),
):
    if config_type not in CONFIG_TYPES:
        raise InvalidInputError(f"Unknown prompt config type: {config_type}")
    config = storage.get_active_prompt_config(config_type, quick_action_type)
    return PromptConfigResponse.model_validate(config) if config else None


@router.post("/prompt-configs", response_model=PromptConfigResponse)
def create_prompt_config(
    request: PromptConfigCreateRequest,
    storage: Storage = Depends(get_storage),
):
    config = storage.create_prompt_config(PromptConfig(**request.model_dump()))
    logger.info(f"Created prompt config {config.id} ({config.type})")
    return PromptConfigResponse.model_validate(config)


@router.put("/prompt-configs/{config_id}", response_model=PromptConfigResponse)
def update_prompt_config(
    config_id: str,
    request: PromptConfigUpdateRequest,
    storage: Storage = Depends(get_storage),
):
    """Partial update; the version increases when either template changes."""
    updates = request.model_dump(exclude_unset=True)
    if updates.get("type") and updates["type"] != "quick_action":
        updates["quick_action_type"] = None

    existing = storage.get_prompt_config(config_id)
    if not existing:
        raise NotFoundError("Prompt configuration not found")
    if updates.get("type", existing.type) == "quick_action" and not updates.get(
        "quick_action_type", existing.quick_action_type
    ):
        raise InvalidInputError("quickActionType is required for quick_action configs")

    config = storage.update_prompt_config(config_id, updates)
    if not config:
        raise NotFoundError("Prompt configuration not found")
    return PromptConfigResponse.model_validate(config)


@router.delete("/prompt-configs/{config_id}", response_model=SuccessResponse)
def delete_prompt_config(config_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_prompt_config(config_id):
        raise NotFoundError("Prompt configuration not found")
    return SuccessResponse(message="Prompt configuration deleted successfully")


@router.post("/prompt-configs/{config_id}/activate", response_model=SuccessResponse)
def activate_prompt_config(config_id: str, storage: Storage = Depends(get_storage)):
    """Make this config the only active one in its scope."""
    if not storage.activate_prompt_config(config_id):
        raise NotFoundError("Prompt configuration not found")
    logger.info(f"Activated prompt config {config_id}")
    return SuccessResponse(message="Prompt configuration activated successfully")
