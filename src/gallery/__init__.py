"""
Gallery - Theme and Plugin Marketplace Backend

This package contains the gallery backend services:
- api: FastAPI REST endpoints
- engine: Cache-aside catalog services, favorites and publishing
- storage: Relational store (SQLAlchemy), repositories, object storage
- cache: Ephemeral cache (Redis)
- integrations: npm registry and GitHub clients
- workers: External catalog sync jobs
- platform: Cross-cutting concerns (config, logging, errors)
"""

__version__ = "0.1.0"
