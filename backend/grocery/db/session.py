import os
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from grocery.core.config import settings


def build_async_url(uri: str) -> str:
    """sqlite:/// -> sqlite+aiosqlite:///"""
    if uri.startswith("sqlite:///"):
        return uri.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return uri


# SQL echo only when SQL_DEBUG=true
engine = create_async_engine(
    build_async_url(settings.SQLITE_DATABASE_URI),
    echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
    future=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
