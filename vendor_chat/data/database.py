from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from ..app.config import Config

DATABASE_URL = Config.DATABASE_URL

# Create the SQLAlchemy engine
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create a base class for our models
Base = declarative_base()

def create_tables(bind=None):
    """Create all tables in the database."""
    # Import all models here before calling create_all
    # This ensures they are registered with the Base metadata
    from .models import ConvoSession  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
