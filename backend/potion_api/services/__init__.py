# Services package init
"""
Potion API — Services Layer
============================

What:  Business logic between the routes (HTTP) and MongoDB (persistence).

Service Inventory:
    - token_service.py:  issue / verify signed session tokens (PyJWT)
    - cookies.py:        total Cookie header parser
    - validators.py:     registration, login and query parameter validation
    - query_builder.py:  pure filter / sort / aggregation pipeline construction
    - auth_service.py:   user registration and credential checks (bcrypt)
    - potion_service.py: potion CRUD and analytics execution
"""
