"""
Database initialization script
Run this to create all tables for the configured DATABASE_URL
"""
from unitrack.config import get_settings
from unitrack.database import Base, build_engine
import unitrack.models  # noqa: F401


def init_database():
    """Create all tables"""
    engine = build_engine(get_settings())
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    print("Database initialized successfully!")


if __name__ == "__main__":
    init_database()
