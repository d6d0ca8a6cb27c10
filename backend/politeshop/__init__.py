"""POLITEShop: crawls POLITEMall/Brightspace into a navigable academic hierarchy.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
