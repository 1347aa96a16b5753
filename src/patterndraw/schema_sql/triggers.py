"""Trigger functions and trigger DDL for the initial schema."""

# ---- Trigger functions ----

FN_TOUCH_UPDATED_AT = """
CREATE OR REPLACE FUNCTION touch_updated_at()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = now();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""

FUNCTIONS_ALL = [FN_TOUCH_UPDATED_AT]

# ---- Triggers ----

TRG_DRAWINGS_UPDATED_AT = """
CREATE TRIGGER trg_drawings_updated_at
    BEFORE UPDATE ON drawings
    FOR EACH ROW
    EXECUTE FUNCTION touch_updated_at();
"""

TRIGGERS_ALL = [TRG_DRAWINGS_UPDATED_AT]
