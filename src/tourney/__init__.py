"""Tournament site data layer: match ingestion, storage and statistics."""

__version__ = "0.1.0"
