"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Routes only touch the public container surface (peek, observe, listen, mutate)

Design Decisions:
    - Thin routes: every state change goes through StateContainer.mutate
"""
