"""
Potion API — Application Package Initializer
=============================================

What: Marks the `potion_api` directory as a Python package.
Why:  Enables module imports like `from potion_api.config import settings`.
Who:  Used by uvicorn (`uvicorn potion_api.main:app`), pytest, and the services.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, cookies, status codes
    ├─────────────────────────────────────┤
    │     Security (Auth Gate, policies)  │  ← who may call a route
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, query building, tokens
    ├─────────────────────────────────────┤
    │       Database (MongoDB, async)     │  ← `users` and `potions` collections
    └─────────────────────────────────────┘

    The query builder and the validators are pure functions, so the
    interesting logic can be tested without a running MongoDB.
"""

__version__ = "1.0.0"
