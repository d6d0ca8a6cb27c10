"""Infrastructure Layer: upstream HTTP clients, database sessions, logging.

Invariants:
    - All upstream failures mapped to typed PoliteShopErrors (core/errors.py)
    - No retries: a failed upstream call fails the operation

Design Decisions:
    - httpx.AsyncClient per request: cookie jar and bearer token never leak
      between users
"""
