"""
Shared Module

Contains the domain code used by the API:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Services: Business logic layer
- Schemas: Pydantic request/response models
- Core: Logging, exceptions
- Adapters: External service integrations (email)

Package Structure:
==================
    shared/
    ├── core/           ← Logging, exceptions
    ├── db/             ← Database session management
    ├── models/         ← SQLAlchemy models
    ├── repositories/   ← Data access layer
    ├── services/       ← Business logic
    ├── schemas/        ← Pydantic schemas
    ├── adapters/       ← External services
    └── utils/          ← Utilities

Usage:
======
    from cliqstr.shared.models import User, Account, ParentApproval
    from cliqstr.shared.repositories import UserRepository
    from cliqstr.shared.services import AuthService
    from cliqstr.shared.core import logger, CliqstrException
"""
