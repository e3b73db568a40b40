"""Document store implementations.

    SQLiteDocumentStore    - default; single file, no server needed.
    PgVectorDocumentStore  - PostgreSQL with the pgvector extension.

The backend is chosen from the ``DATABASE_URL`` scheme in docqa/main.py.
"""

from docqa.providers.store.pgvector_document_store import PgVectorDocumentStore
from docqa.providers.store.sqlite_document_store import SQLiteDocumentStore

__all__ = ["PgVectorDocumentStore", "SQLiteDocumentStore"]
