"""Infrastructure Layer — data sources, DB sessions, logging.

Invariants:
    - Infrastructure implements core protocols; core never imports it
    - All SQLAlchemy failures mapped to core errors before leaving this layer
"""
