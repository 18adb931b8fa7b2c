"""
AURA Forensic Service - Non-decisional evidence consistency analysis
Standalone microservice for forensic review support

Architecture:
- Intake: protocol-validated, content-addressed intake freezing
- Metadata Extractor: technical metadata extraction and flagging
- Signal Aggregator: auxiliary multi-signal scoring
- Consistency Engine: declaration vs evidence comparison

The service never validates authenticity, determines AI usage or assigns a
GIT level; every output is advisory input for a human reviewer.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from aura_forensics.config.settings import settings, get_cors_config

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "intake": "POST /intake-freeze",
    "metadata_analysis": "POST /analysis/metadata",
    "metadata_extraction": "POST /analysis/metadata-extract",
    "ai_signals": "POST /analysis/ai-signals",
    "consistency": "POST /analysis/consistency",
    "pipeline": "POST /analysis/pipeline",
}

PRINCIPLES = [
    "Does not validate authenticity",
    "Does not determine AI usage",
    "Does not invalidate cases",
    "Objective technical analysis only",
]


def create_app() -> FastAPI:
    """Create and configure the AURA forensic service application."""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Non-decisional forensic analysis of artist declarations against technical evidence",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # CORS
    cors_config = get_cors_config()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config["allow_origins"],
        allow_credentials=cors_config["allow_credentials"],
        allow_methods=cors_config["allow_methods"],
        allow_headers=cors_config["allow_headers"],
    )

    # Import routes (deferred to avoid circular imports)
    from aura_forensics.api.routes import analysis, intake

    # Register routes
    app.include_router(intake.router)
    app.include_router(analysis.router)

    @app.get("/")
    async def root():
        """Root endpoint - service information"""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "operational",
            "endpoints": {**ENDPOINTS, "health": "GET /health", "docs": "/docs"},
        }

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {
            "status": "ok",
            "service": "aura-forensic-service",
            "version": settings.APP_VERSION,
            "principles": PRINCIPLES,
            "endpoints": ENDPOINTS,
        }

    logger.info(f"{settings.APP_NAME} initialized on port {settings.PORT}")
    return app

# Create app instance
app = create_app()
