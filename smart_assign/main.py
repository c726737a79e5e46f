from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from smart_assign.api.v1 import router as v1_router
from smart_assign.core.config import settings
from smart_assign.core.exceptions import StoreNotConfiguredError
from smart_assign.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    logger.info("%s %s starting up", settings.SERVICE_NAME, settings.ENGINE_VERSION)
    yield
    logger.info("%s shutting down", settings.SERVICE_NAME)


# 1. Initialize FastAPI with metadata
app = FastAPI(
    title="Smart Assign Engine",
    description="Assigns SOP tasks to restaurant staff by skill, availability, workload, performance and fairness.",
    version=settings.ENGINE_VERSION,
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 2. Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. Mount Versioned Routers
app.include_router(v1_router, prefix="/api/v1")

# 4. Store errors raised while resolving dependencies
@app.exception_handler(StoreNotConfiguredError)
async def store_not_configured_handler(request: Request, exc: StoreNotConfiguredError):
    logger.warning("Store-backed endpoint called without Supabase credentials: %s", request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": {"error": str(exc), "errorCode": "STORE_UNAVAILABLE"}},
    )

# 5. Global Health Check
@app.get("/", tags=["System"])
async def health_check():
    """
    Check if the assignment engine is up.
    """
    return {
        "status": "online",
        "service": settings.SERVICE_NAME,
        "environment": "production" if not settings.DEBUG else "development"
    }
