"""
Sale Audit - storefront sale fulfillment with AI-generated business audits.

This package contains the core modules for the pipeline:
- services: report generation, sale ledger, intake workflow, dashboard summary
- delivery: SendGrid email delivery and email templates
- api: FastAPI application and endpoints
- config: Pydantic settings
- core: exception hierarchy
- models: sale and collaborator result models
- monitoring: Prometheus metrics
"""

__version__ = "0.1.0"
