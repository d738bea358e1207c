# File: /recordbase/models/__init__.py | Version: 2.0 | Title: Models Package Exports
from .core_entities import Database, Property, Record
from .view import View

__all__ = [
    "Database",
    "Property",
    "Record",
    "View",
]
