"""docqa: upload documents, ask questions, get answers grounded in their text."""

__version__ = "0.1.0"
