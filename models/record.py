"""Key-value record table."""
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, MetaData, String, Table, Text


def keyvalue_table(metadata: MetaData, collection: str) -> Table:
    """
    Build the table backing one key-value collection.

    Each row holds a string key and its JSON serialized value.
    """
    return Table(
        collection,
        metadata,
        Column("key", String(255), primary_key=True),
        Column("value", Text, nullable=False),
        Column(
            "updated_at",
            DateTime(timezone=True),
            default=lambda: datetime.now(timezone.utc),
            onupdate=lambda: datetime.now(timezone.utc),
        ),
    )
