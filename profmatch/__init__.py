"""ProfMatch: instructor-page ingestion and retrieval-augmented Q&A."""

__version__ = "0.1.0"
