from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# Nested documents (rounds, frames, scores) live in JSON columns; JSONB on PostgreSQL.
JSONType = JSON().with_variant(JSONB(), "postgresql")
