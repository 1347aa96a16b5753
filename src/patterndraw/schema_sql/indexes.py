"""All CREATE INDEX statements for the initial schema."""

ALL = [
    # drawings -- listing is per owner, newest update first
    "CREATE INDEX ix_drawings_owner_updated ON drawings(owner_id, updated_at DESC);",
]
