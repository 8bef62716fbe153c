"""
Database connection for the Gharpan admin portal
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# PostgreSQL through psycopg2: address and care events use JSONB there, and the
# pool arguments below assume a server. Tests swap get_db for an in-memory
# SQLite session instead of pointing this URL at SQLite.
DATABASE_URL = os.getenv("DATABASE_URL", "postgresql:///gharpan_db")

engine = create_engine(
    DATABASE_URL,
    pool_size=10,           # Base connections to keep open
    max_overflow=20,        # Additional connections when busy (30 total max)
    pool_timeout=30,        # Seconds to wait for connection before error
    pool_recycle=1800,      # Recycle connections after 30 min
    pool_pre_ping=True,     # Test connections before using
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
