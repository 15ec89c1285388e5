"""
Potion API — Pydantic Schemas
==============================

What:  Request bodies and response shapes of the HTTP API.
Why:   FastAPI validates bodies against them and generates the OpenAPI docs.

Modules:
    - auth.py:    credentials payload, message responses
    - potion.py:  potion create/update payloads and output shapes
    - common.py:  error and health responses shared by every router
"""
