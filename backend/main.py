"""
Magazine Summaries Search API
Main entry point for the FastAPI application
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1.models import ErrorResponse
from api.v1.routes import search_router
from database.connect import close_db_pool, is_db_configured, test_connection
from utils import settings


# ======================
# ===== Logging setup ===
# ======================
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("backend.main")

# ======================
# ===== FastAPI app ====
# ======================
app = FastAPI(
    title="Magazine Summaries Search API",
    description="Hybrid relevance search over magazine and article summaries",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# ======================
# ===== CORS setup =====
# ======================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ======================
# ===== Health check ===
# ======================
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    if not is_db_configured():
        db_status = "not configured"
    elif await test_connection():
        db_status = "connected"
    else:
        db_status = "failed"

    return {
        "status": "healthy" if db_status == "connected" else "unhealthy",
        "service": "Magazine Summaries Search API",
        "version": "1.0.0",
        "database": db_status,
        "embeddings": "configured" if settings.OPENAI_API_KEY else "text-only"
    }


@app.get("/")
async def root():
    """API information"""
    return {
        "name": "Magazine Summaries Search API",
        "version": "1.0.0",
        "endpoints": {
            "smart_search": "/api/v1/smart-search",
            "health": "/health"
        }
    }

# ======================
# ===== Routers ========
# ======================
app.include_router(search_router, prefix="/api/v1")

# ======================
# === Exception Handler
# ======================
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Global exception: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if settings.DEBUG else "An error occurred"
        ).model_dump()
    )

# ======================
# ===== Events =========
# ======================
@app.on_event("startup")
async def startup_event():
    """Application startup - the database pool is created on first use"""
    logger.info("Magazine Summaries Search API starting up...")
    if not is_db_configured():
        logger.warning("Database credentials are not configured; searches will return no candidates")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not configured; smart search runs in text-only mode")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown - Close async database pool"""
    logger.info("Magazine Summaries Search API shutting down...")
    try:
        await close_db_pool()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")

# ======================
# ===== Entry point ====
# ======================
def main():
    """Main function to run the application"""
    import uvicorn

    logger.info(f"Starting server on {settings.HOST}:{settings.PORT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )


if __name__ == "__main__":
    main()
