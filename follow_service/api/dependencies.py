"""
FastAPI dependencies for authentication and service wiring
"""
import hmac
import httpx
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from ..config import settings
from ..schemas import CurrentUser
from ..application import (
    FollowWorkflow,
    NotificationService,
    ProfileService,
    AccountService,
    UnitOfWorkFactory,
)
from ..infrastructure.database import db
from ..infrastructure.memory import InMemoryStore
from ..infrastructure.push import NotificationPublisher, get_notification_publisher
from ..infrastructure.events import KafkaProducerManager, get_kafka_producer

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Backing store when STORAGE_BACKEND=memory
memory_store = InMemoryStore()


async def verify_token_with_identity_service(token: str) -> Optional[dict]:
    """
    Verify a bearer token with the identity provider

    Args:
        token: Access token

    Returns:
        User data if token is valid, None otherwise
    """
    try:
        async with httpx.AsyncClient(timeout=settings.IDENTITY_TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{settings.IDENTITY_SERVICE_URL}/api/v1/auth/me",
                headers={"Authorization": f"Bearer {token}"},
            )

            if response.status_code == 200:
                return response.json()
            else:
                logger.warning(
                    f"Token verification failed: {response.status_code} - {response.text}"
                )
                return None

    except httpx.TimeoutException:
        logger.error("Identity service timeout during token verification")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is temporarily unavailable",
        )
    except httpx.ConnectError:
        logger.error("Failed to connect to identity service")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is unavailable",
        )


async def resolve_user(token: str) -> CurrentUser:
    """Turn a bearer token into the authenticated user"""
    user_data = await verify_token_with_identity_service(token)

    if not user_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = CurrentUser(**user_data)
    except (TypeError, ValueError) as e:
        logger.error(f"Error parsing user data: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user data",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    Get current authenticated user

    Raises:
        HTTPException: If token is invalid or user is inactive
    """
    return await resolve_user(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        HTTPBearer(auto_error=False)
    ),
) -> Optional[CurrentUser]:
    """Get current user if authenticated, None otherwise"""
    if not credentials:
        return None

    try:
        return await resolve_user(credentials.credentials)
    except HTTPException:
        return None


async def verify_identity_webhook(
    x_identity_webhook_secret: str = Header(...),
) -> None:
    """Only the identity provider may deliver account events"""
    if not hmac.compare_digest(x_identity_webhook_secret, settings.IDENTITY_WEBHOOK_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )


def get_uow_factory() -> UnitOfWorkFactory:
    """Unit of work factory for the configured storage backend"""
    if settings.STORAGE_BACKEND == "memory":
        return memory_store.unit_of_work
    return db.unit_of_work


def get_follow_workflow(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
    kafka: KafkaProducerManager = Depends(get_kafka_producer),
) -> FollowWorkflow:
    """Get FollowWorkflow instance with dependencies"""
    return FollowWorkflow(uow_factory, publisher, kafka)


def get_profile_service(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> ProfileService:
    return ProfileService(uow_factory)


def get_notification_service(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> NotificationService:
    return NotificationService(uow_factory)


def get_account_service(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> AccountService:
    return AccountService(uow_factory)
