"""
FastAPI application for Follow Service
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .config import settings
from .domain.errors import FollowServiceError
from .infrastructure.database import db
from .infrastructure.push import notification_publisher
from .infrastructure.events import kafka_producer
from .api.routes import (
    follow_router,
    profiles_router,
    notifications_router,
    accounts_router,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Follow Service...")

    if settings.STORAGE_BACKEND == "postgres":
        await db.connect()
        if settings.DB_CREATE_SCHEMA:
            await db.create_schema()
        logger.info("Database connected")
    else:
        logger.info(f"Using {settings.STORAGE_BACKEND} storage backend")

    # Connect to Redis
    await notification_publisher.connect()
    logger.info("Notification push initialized")

    # Start Kafka producer
    await kafka_producer.start()
    logger.info("Kafka producer started")

    logger.info(f"Follow Service started successfully on port {settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Follow Service...")

    await kafka_producer.stop()
    await notification_publisher.disconnect()
    if settings.STORAGE_BACKEND == "postgres":
        await db.disconnect()

    logger.info("Follow Service shut down successfully")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Follow Service - follow requests, privacy-gated profiles and notifications",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FollowServiceError)
async def follow_service_exception_handler(request: Request, exc: FollowServiceError):
    return JSONResponse(
        status_code=exc.status,
        content={"code": exc.code, "message": exc.message},
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": settings.APP_NAME}


app.include_router(follow_router)
app.include_router(profiles_router)
app.include_router(notifications_router)
app.include_router(accounts_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "follow_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
