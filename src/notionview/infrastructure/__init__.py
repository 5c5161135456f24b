"""Infrastructure layer - External dependencies and implementations.

This layer contains all external dependencies including:
- The Notion api/v3 client (httpx)
- API routes (FastAPI)
- The in-process edge cache

The infrastructure layer implements interfaces defined in the
domain layer.
"""
