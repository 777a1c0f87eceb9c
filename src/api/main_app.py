"""Main FastAPI application for the API layer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.api.infrastructure.container import init_container, shutdown_container
from src.api.routers import batches, executions, strategies
from src.config import AppConfig
from src.strategy.infrastructure.logging import configure_structured_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    config = AppConfig()
    configure_structured_logging(
        level=config.logging.level,
        file=config.logging.file,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
    )
    logger.info("🚀 Starting Strategy Engine API...")

    init_container(config.model_dump(mode="json"))
    logger.info(f"✓ Backend at {config.backend.base_url}, polling every {config.polling.interval_seconds}s")
    logger.info("✓ API ready")

    yield

    # Shutdown
    logger.info("🛑 Shutting down API...")
    await shutdown_container()
    logger.info("✓ Polling stopped, backend connections closed")


# Create FastAPI app
app = FastAPI(
    title="Strategy Engine API",
    description="Rule (strategy) authoring, execution tracking and batch upload for collections operations",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure as needed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(strategies.router)
app.include_router(executions.router)
app.include_router(batches.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Strategy Engine API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
