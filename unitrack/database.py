from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from unitrack.config import Settings

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """Create the engine for the configured database URL"""
    url = settings.database_url

    if url.startswith("sqlite"):
        # In-memory databases must share one connection across threads
        if ":memory:" in url or url == "sqlite://":
            return create_engine(
                url,
                echo=settings.SQL_ECHO,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, echo=settings.SQL_ECHO, connect_args={"check_same_thread": False})

    # Use pool_pre_ping to handle connection issues gracefully
    # pool_recycle to prevent stale connections
    return create_engine(
        url,
        echo=settings.SQL_ECHO,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={
            "connect_timeout": 10,
        },
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
