from .document_store import DocumentStore, DATABASE_FILE

__all__ = ["DocumentStore", "DATABASE_FILE"]
