"""Services Layer: credential resolution, hierarchy crawling, persistence, sync.

Invariants:
    - Services orchestrate IO around pure core/ logic
    - No service mutates a PolitemallSession; new sessions are returned instead
"""
