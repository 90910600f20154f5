"""SQLAlchemy Core table definitions for jobs, attempts and connections.

Core, not ORM: typed column references for the query builder, nothing more.
Configurations, catalogs and state are connector-owned JSON documents and
are stored as JSON columns without further structure.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

connections = Table(
    "connections",
    metadata,
    Column("id", Text, primary_key=True),
    Column("source_image", Text, nullable=False),
    Column("destination_image", Text, nullable=False),
    Column("source_configuration", JSON, nullable=False),
    Column("destination_configuration", JSON, nullable=False),
    Column("catalog", JSON, nullable=False),
    Column("normalization_enabled", Boolean, nullable=False, default=False),
    Column("operations", JSON, nullable=False, default=list),
    # Seconds between syncs; NULL means manual-only.
    Column("schedule_seconds", Integer),
    Column("status", Text, nullable=False, default="active"),
    Column("updated_at", DateTime(timezone=True)),
)

connection_state = Table(
    "connection_state",
    metadata,
    Column("connection_id", Text, ForeignKey("connections.id"), primary_key=True),
    Column("state", JSON),
    Column("updated_at", DateTime(timezone=True)),
)

jobs = Table(
    "jobs",
    metadata,
    Column("id", BigInteger, primary_key=True, autoincrement=True),
    Column("connection_id", Text, ForeignKey("connections.id"), nullable=False),
    Column("status", Text, nullable=False),
    Column("failure_reason", Text),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

attempts = Table(
    "attempts",
    metadata,
    Column("id", BigInteger, primary_key=True, autoincrement=True),
    Column("job_id", BigInteger, ForeignKey("jobs.id"), nullable=False),
    Column("attempt_number", Integer, nullable=False),
    Column("log_path", Text),
    Column("status", Text, nullable=False),
    Column("output", JSON),
    Column("failure_reason", Text),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("ended_at", DateTime(timezone=True)),
    UniqueConstraint("job_id", "attempt_number"),
)
