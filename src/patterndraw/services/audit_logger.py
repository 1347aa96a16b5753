"""Structured audit logger for drawing lifecycle and share events.

Every entry is emitted via structlog with ``audit: true`` so log pipelines can
filter on it.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog


log = structlog.get_logger()


class AuditLogger:
    """Emits audit log lines only; performs no other I/O."""

    def log_drawing_event(self, action: str, drawing_id, owner_id) -> None:
        """Record a saved drawing being created, updated or deleted."""
        log.info(
            "audit_event",
            event_type="drawing",
            action=action,
            timestamp=datetime.now(timezone.utc).isoformat(),
            drawing_id=str(drawing_id),
            owner_id=str(owner_id),
            audit=True,
        )

    def log_share_event(
        self,
        token_length: int,
        compressor: str,
        drawing_id=None,
        user_id=None,
    ) -> None:
        """Record a share link being issued.

        ``drawing_id``/``user_id`` are ``None`` for anonymous links built from
        an unsaved document.
        """
        log.info(
            "audit_event",
            event_type="share_link",
            timestamp=datetime.now(timezone.utc).isoformat(),
            drawing_id=str(drawing_id) if drawing_id else None,
            user_id=str(user_id) if user_id else None,
            token_length=token_length,
            compressor=compressor,
            audit=True,
        )
