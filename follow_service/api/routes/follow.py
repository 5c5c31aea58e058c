"""
Follow routes
"""
from fastapi import APIRouter, Depends, Query
from uuid import UUID

from ...config import settings
from ...domain.models import RelationshipStatus
from ...application import FollowWorkflow, ProfileService
from ...schemas import (
    CurrentUser,
    FollowRequestAction,
    FollowResponse,
    ConnectionsResponse,
    RelationshipResponse,
    RelationshipViewResponse,
)
from ..dependencies import get_current_user, get_follow_workflow, get_profile_service


router = APIRouter(prefix="/api/v1", tags=["Follow"])


@router.post("/follow/{user_id}", response_model=FollowResponse, summary="Follow a user")
async def follow_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    workflow: FollowWorkflow = Depends(get_follow_workflow),
):
    """
    Follow a user

    - If the target account is private, a follow request is sent
    - If the target account is public, you follow them immediately
    """
    edge = await workflow.request_follow(current_user.id, current_user.id, user_id)

    if edge.status == RelationshipStatus.PENDING:
        message = "Follow request sent"
    else:
        message = "Successfully followed user"

    return FollowResponse(
        success=True,
        status=edge.status,
        message=message,
        relationship=RelationshipResponse.model_validate(edge),
    )


@router.delete("/follow/{user_id}", response_model=FollowResponse, summary="Unfollow a user")
async def unfollow_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    workflow: FollowWorkflow = Depends(get_follow_workflow),
):
    """
    Unfollow a user

    Only applies to accepted follows; pending requests are cancelled with
    DELETE /follow/{user_id}/request.
    """
    await workflow.unfollow(current_user.id, current_user.id, user_id)
    return FollowResponse(
        success=True,
        status=RelationshipStatus.ACCEPTED,
        message="Successfully unfollowed user",
    )


@router.delete(
    "/follow/{user_id}/request",
    response_model=FollowResponse,
    summary="Cancel a pending follow request",
)
async def cancel_follow_request(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    workflow: FollowWorkflow = Depends(get_follow_workflow),
):
    await workflow.cancel_request(current_user.id, current_user.id, user_id)
    return FollowResponse(
        success=True,
        status=RelationshipStatus.PENDING,
        message="Follow request cancelled",
    )


@router.get(
    "/requests/pending",
    response_model=ConnectionsResponse,
    tags=["Follow Requests"],
    summary="Get pending follow requests",
)
async def get_pending_requests(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"
    ),
    current_user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Users who have requested to follow you"""
    result = await service.list_pending_requests(current_user.id, page, page_size)
    return ConnectionsResponse.from_page(result, follower_side=True)


@router.post(
    "/requests/{follower_id}",
    response_model=FollowResponse,
    tags=["Follow Requests"],
    summary="Accept or reject follow request",
)
async def handle_follow_request(
    follower_id: UUID,
    action: FollowRequestAction,
    current_user: CurrentUser = Depends(get_current_user),
    workflow: FollowWorkflow = Depends(get_follow_workflow),
):
    """
    Accept or reject a follow request

    - action: 'accept' or 'reject'
    """
    if action.action == "accept":
        edge = await workflow.accept_request(current_user.id, follower_id, current_user.id)
        message = "Follow request accepted"
    else:
        edge = await workflow.reject_request(current_user.id, follower_id, current_user.id)
        message = "Follow request rejected"

    return FollowResponse(
        success=True,
        status=edge.status,
        message=message,
        relationship=RelationshipResponse.model_validate(edge),
    )


@router.get(
    "/relationship/{user_id}",
    response_model=RelationshipViewResponse,
    tags=["Relationship"],
    summary="Get relationship with user",
)
async def get_relationship(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """
    Get relationship between current user and target user

    - following: Current user follows target user
    - followed_by: Target user follows current user
    - mutual: Both users follow each other
    - pending: Current user sent follow request to target user
    - requested: Target user sent follow request to current user
    - none: No relationship
    """
    view = await service.get_relationship(current_user.id, user_id)
    return RelationshipViewResponse.model_validate(view)
