"""Database Infrastructure — SQLAlchemy Base and async session factory.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)

Design Decisions:
    - aiosqlite by default, asyncpg when DATABASE_URL points at PostgreSQL
"""
