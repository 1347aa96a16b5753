"""CREATE TABLE statements for users and saved drawings."""

USERS = """
CREATE TABLE users (
    user_id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    email           VARCHAR(320) NOT NULL UNIQUE,
    username        VARCHAR(40)  NOT NULL UNIQUE,
    password_hash   VARCHAR(255) NOT NULL,
    token_version   INTEGER NOT NULL DEFAULT 0,
    is_active       BOOLEAN NOT NULL DEFAULT TRUE,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""

# document holds the decoded drawing (camelCase JSON, palette as an array).
DRAWINGS = """
CREATE TABLE drawings (
    drawing_id  UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    owner_id    UUID NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    document    JSONB NOT NULL
                CONSTRAINT ck_drawing_document_object
                CHECK (jsonb_typeof(document) = 'object'),
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""

ALL = [
    USERS,
    DRAWINGS,
]
