from urllib.parse import urlparse
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from typing import Generator

from paysync.config import settings

# -----------------------
# DATABASE URL
# -----------------------
SQLALCHEMY_DATABASE_URL = (settings.DATABASE_URL or "").strip()

if not SQLALCHEMY_DATABASE_URL:
    raise RuntimeError(
        "DATABASE_URL is not set. Please set a valid database URL."
    )

parsed = urlparse(SQLALCHEMY_DATABASE_URL)
if not (parsed.scheme.startswith("postgresql") or parsed.scheme.startswith("sqlite")):
    raise RuntimeError(
        f"Unsupported DATABASE_URL scheme '{parsed.scheme}'. Use Postgres or SQLite."
    )

# Ensure sslmode=require if missing
if "sslmode=" not in SQLALCHEMY_DATABASE_URL and parsed.scheme.startswith("postgresql"):
    sep = "&" if "?" in SQLALCHEMY_DATABASE_URL else "?"
    SQLALCHEMY_DATABASE_URL = f"{SQLALCHEMY_DATABASE_URL}{sep}sslmode=require"

# -----------------------
# SQLAlchemy Engine
# -----------------------
_engine_kwargs = {"future": True, "echo": False, "pool_pre_ping": True}
if parsed.scheme.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    _engine_kwargs["pool_recycle"] = 300

engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

# Base for ALL models
Base = declarative_base()

# -----------------------
# Dependency
# -----------------------
def get_db() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
