"""
Cliqstr Backend

Family social network API: cliqs, parent approvals and Red Alert moderation.

Package Structure:
==================
    cliqstr/
    ├── api/        ← FastAPI application
    ├── shared/     ← Shared code (models, services, etc.)
    └── config/     ← Configuration

Running the Application:
========================
    # API Server
    uvicorn cliqstr.api.main:app --reload

    # Migrations
    alembic upgrade head
"""
