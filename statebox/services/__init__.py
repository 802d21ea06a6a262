"""Services Layer — concrete state containers and the store registry.

Invariants:
    - Every concrete container maps each mutation action to exactly one handler
    - Handler dispatch uses an explicit dict (no auto-discovery)

Design Decisions:
    - One file per container for locality
"""
