"""Database store layer - provides persistence for the application.

This module re-exports all public database functions for easy importing.
"""

from cashmap.store.documents import export_document, import_document, load_document, save_document
from cashmap.store.schema import DOCUMENT_KEY, database_exists, get_db_path, init_database

__all__ = [
    # Schema
    "DOCUMENT_KEY",
    "database_exists",
    "get_db_path",
    "init_database",
    # Documents
    "export_document",
    "import_document",
    "load_document",
    "save_document",
]
