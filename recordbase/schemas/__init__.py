# File: /recordbase/schemas/__init__.py | Version: 2.0
from . import database, filters, properties, records, view

__all__ = ["database", "filters", "properties", "records", "view"]
