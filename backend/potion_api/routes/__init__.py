# Routes package init
"""
Potion API — API Routes Package
================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles a specific resource or action.

Route Inventory:
    - auth.py:     POST /auth/register, POST /auth/login, GET /auth/logout
    - potions.py:  /potions CRUD, price range, vendor listing, analytics
    - health.py:   GET  /health

Design Principle:
    Routes should be THIN: they handle HTTP concerns only:
    - Extract data from request (query params, body, cookies)
    - Call the appropriate service
    - Format the response with correct status code and cookies
"""
