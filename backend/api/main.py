"""
FastAPI main application.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import API_V1_PREFIX, CORS_ORIGINS
from core.config_validator import config_validator
from core.logging_config import setup_logging
from api.routes import extraction

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Task Extraction API",
    description="Extracts structured academic tasks from syllabi and course material",
    version="1.0.0",
)


@app.on_event("startup")
async def validate_configuration():
    """Validate configuration on application startup."""
    logger.info("Validating configuration...")

    validation_result = config_validator.validate_all()

    for warning in validation_result["warnings"]:
        logger.warning(warning)

    if not validation_result["valid"]:
        for error in validation_result["errors"]:
            logger.error(error)
        logger.critical("Application startup aborted due to configuration errors.")
        raise SystemExit(1)

    logger.info("Configuration validated successfully")


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(extraction.router, prefix=f"{API_V1_PREFIX}/extraction", tags=["extraction"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Task Extraction API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
