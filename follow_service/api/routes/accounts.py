"""
Identity provider event routes
"""
from fastapi import APIRouter, Depends, status

from ...application import AccountService
from ...schemas import AccountResponse, UserCreatedEvent
from ..dependencies import get_account_service, verify_identity_webhook


router = APIRouter(
    prefix="/api/v1/accounts",
    tags=["Accounts"],
    dependencies=[Depends(verify_identity_webhook)],
)


@router.post(
    "/events/user-created",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def user_created(
    event: UserCreatedEvent,
    service: AccountService = Depends(get_account_service),
):
    """
    Create the default account for a new identity

    Redelivered events return the existing account.
    """
    account = await service.provision_account(event.model_dump())
    return AccountResponse.model_validate(account)
