"""
Sale Audit FastAPI Application.

This module contains the REST API for the sale audit pipeline:

- main: FastAPI application entry point and configuration
- routes/: API endpoint definitions organized by domain
- models: Pydantic response models
- dependencies: FastAPI dependency injection providers

API Structure:
- /health - Health check and readiness probes
- /api/v1/process-sale - Storefront sale notification webhook
- /api/v1/dashboard - Key-gated sales summary
- /metrics - Prometheus metrics

Example:
    from src.api.main import app

    # Run with: uvicorn src.api.main:app --reload
"""

from src.api.main import app

__all__ = ["app"]
