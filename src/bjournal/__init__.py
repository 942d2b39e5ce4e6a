# src/bjournal/__init__.py
from .versioning import get_version

__version__ = get_version()
