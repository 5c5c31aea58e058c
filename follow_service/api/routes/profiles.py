"""
Profile routes
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from uuid import UUID

from ...config import settings
from ...application import FollowWorkflow, ProfileService
from ...schemas import (
    CurrentUser,
    ConnectionsResponse,
    GraphStatsResponse,
    PrivacyResponse,
    PrivacyUpdate,
    ProfileResponse,
)
from ..dependencies import (
    get_current_user,
    get_optional_user,
    get_follow_workflow,
    get_profile_service,
)


router = APIRouter(prefix="/api/v1/profiles", tags=["Profiles"])


@router.put("/me/privacy", response_model=PrivacyResponse)
async def update_my_privacy(
    update: PrivacyUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    workflow: FollowWorkflow = Depends(get_follow_workflow),
):
    """
    Make your account private or public

    Going private rejects every pending follow request.
    """
    change = await workflow.set_privacy(current_user.id, current_user.id, update.is_private)
    return PrivacyResponse(
        is_private=change.account.is_private,
        rejected_count=change.rejected_count,
    )


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: UUID,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    service: ProfileService = Depends(get_profile_service),
):
    """
    Get a profile

    Private accounts come back redacted unless you own them or follow them.
    """
    viewer_id = current_user.id if current_user else None
    profile = await service.get_profile(viewer_id, user_id)
    return ProfileResponse.from_domain(profile)


@router.get("/{user_id}/followers", response_model=ConnectionsResponse)
async def get_followers(
    user_id: UUID,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"
    ),
    search: Optional[str] = Query(None, description="Filter by display or full name"),
    current_user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Accepted followers of a user, newest first"""
    result = await service.list_followers(current_user.id, user_id, page, page_size, search)
    return ConnectionsResponse.from_page(result, follower_side=True)


@router.get("/{user_id}/following", response_model=ConnectionsResponse)
async def get_following(
    user_id: UUID,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"
    ),
    search: Optional[str] = Query(None, description="Filter by display or full name"),
    current_user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Accounts a user follows, newest first"""
    result = await service.list_following(current_user.id, user_id, page, page_size, search)
    return ConnectionsResponse.from_page(result, follower_side=False)


@router.get("/{user_id}/stats", response_model=GraphStatsResponse)
async def get_stats(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """
    Follower, following and pending request counts

    The pending count is only reported on your own account.
    """
    stats = await service.get_stats(user_id, current_user.id)
    return GraphStatsResponse.model_validate(stats)
