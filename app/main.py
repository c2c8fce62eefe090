from fastapi import FastAPI, Request, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from app.routes import auth, movies, reviews, admin
from app.middleware.security import SecurityHeadersMiddleware
from app.utils.cache import CacheStore, get_cache
from app.utils.exceptions import AppError, StorageError
from app.utils.security import ensure_signing_key
from datetime import datetime, timezone
import os
import logging

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Refuse to start without a 256-bit signing key
    - Log cache configuration
    """
    # Startup
    logger.info("=" * 60)
    logger.info("🚀 Movie Recommendation API Starting...")
    logger.info(f"   Environment: {os.getenv('ENVIRONMENT', 'development')}")
    ensure_signing_key()
    logger.info(f"   Public listing cache: {'enabled' if get_cache().enabled else 'disabled'}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("=" * 60)
    logger.info("🛑 Movie Recommendation API Shutting Down...")
    logger.info("=" * 60)


# Create FastAPI app with lifespan handler
app = FastAPI(
    title="Movie Recommendation API",
    description="Movies, reviews and accounts with role-based access and cached public listings",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Cache"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Trusted Hosts - Production only
if os.getenv("ENVIRONMENT") == "production":
    if trusted_hosts := [h for h in os.getenv("TRUSTED_HOSTS", "").split(",") if h]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)

# ============================================
# Exception Handlers
# ============================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map application errors to their HTTP status"""
    if isinstance(exc, StorageError):
        logger.error(f"Storage error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, same as the service-level validation errors"""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())}
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "Movie Recommendation API",
        "version": "1.0.0",
        "status": "healthy",
        "docs": "/docs"
    }

@app.get("/health", tags=["Health"])
def health_check(cache: CacheStore = Depends(get_cache)):
    """Detailed health check for monitoring"""
    return {
        "status": "healthy",
        "api_version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": {
            "enabled": cache.enabled,
            "connected": cache.ping()
        }
    }

app.include_router(auth.router)
app.include_router(movies.router)
app.include_router(reviews.router)
app.include_router(admin.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
