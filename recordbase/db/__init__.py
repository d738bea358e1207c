# File: recordbase/db/__init__.py | Version: 1.1
# Import models so the declarative Base knows every table before create_all()
import recordbase.models  # noqa: F401

from .base_class import Base
from .session import SessionLocal, engine, get_db

__all__ = ["Base", "get_db", "SessionLocal", "engine"]
