"""Core Layer — state containers, streams, path grammar. No IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Collaborators that do IO are reached only through repository_protocols

Design Decisions:
    - Functional core separated from imperative shell: containers own state,
      the shell decides which collaborators they receive
"""
