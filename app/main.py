from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.database import engine, Base, SessionLocal
from app.api import products, health
from app.services.seed_service import seed_if_empty

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    if settings.SEED_SAMPLE_DATA:
        db = SessionLocal()
        try:
            seed_if_empty(db)
        finally:
            db.close()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    engine.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    A product catalog with an audited stock history and CSV import/export.

    - **Product Management**: Create, update, delete, list and search products
    - **Stock History**: Every stock change is logged with old/new values
    - **CSV Import**: Bulk-create products, skipping duplicates
    - **CSV Export**: Download the whole catalog
    - **Caching**: Redis-based caching for product details

    ## Features

    ### Unique Names
    Product names are unique ignoring case and surrounding whitespace,
    so "Apple" and "apple " are the same product.

    ### Stock History
    A stock change and its history entry are written in one transaction:
    neither is ever saved without the other. Bulk imports are not logged.

    ### Best-effort Import
    Imports add rows one by one. Bad rows are skipped rather than failing
    the whole file, and the response reports what was added and skipped.
    """,
    version="1.0.0",
    contact={
        "name": "API Support",
        "email": "support@example.com"
    },
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
