"""API Layer: thin FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Routes delegate to services; credential resolution lives in dependencies
"""
