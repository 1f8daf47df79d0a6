#!/usr/bin/env python3
"""
Session management module for the vendor chat backend.

This module stores one JSON state blob per session key in the
convo_sessions table. Updates replace the state wholesale; concurrent
writers to the same key are last-write-wins.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..data.database import SessionLocal
from ..data.models import ConvoSession, utcnow
from ..schemas.io_models import SessionLookup, SessionRecord
from ..utils.errors import CreateError, SessionNotFoundError, UpdateError
from ..utils.logger import get_logger

logger = get_logger()


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: ConvoSession) -> SessionRecord:
    return SessionRecord(
        session_key=row.session_key,
        state=row.state,
        last_updated=_aware(row.last_updated),
    )


class SessionStore:
    """CRUD wrapper over the convo_sessions table."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        """Initialize the session store with a SQLAlchemy session factory."""
        self.session_factory = session_factory

    def lookup(self, session_key: str) -> SessionLookup:
        """
        Read a session, telling "does not exist" apart from "store unavailable".

        Args:
            session_key: Unique session identifier

        Returns:
            SessionLookup tagged found, not_found or error
        """
        if not session_key:
            return SessionLookup(status="not_found")

        db = self.session_factory()
        try:
            row = db.query(ConvoSession).filter(ConvoSession.session_key == session_key).first()
            if row is None:
                return SessionLookup(status="not_found")
            return SessionLookup(status="found", record=_to_record(row))
        except SQLAlchemyError as e:
            logger.warning(f"[SESSION] lookup failed for {session_key}: {e}")
            return SessionLookup(status="error", error=str(e))
        finally:
            db.close()

    def get(self, session_key: str) -> Optional[SessionRecord]:
        """
        Retrieve session data.

        Args:
            session_key: Unique session identifier

        Returns:
            Session record, or None when not found or the store errored
        """
        return self.lookup(session_key).record

    def create(self, session_key: str, initial_state: Any = None) -> SessionRecord:
        """
        Create a new session.

        Args:
            session_key: Unique session identifier
            initial_state: Initial JSON state, {} by default

        Returns:
            The stored session record

        Raises:
            CreateError: empty key, duplicate key or failed insert
        """
        if not session_key:
            raise CreateError("create requires a session_key")

        db = self.session_factory()
        try:
            now = utcnow()
            row = ConvoSession(
                session_key=session_key,
                state=initial_state if initial_state is not None else {},
                created_at=now,
                last_updated=now,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(f"[SESSION] Created session {session_key}")
            return _to_record(row)
        except IntegrityError as e:
            db.rollback()
            logger.error(f"[SESSION] create failed, {session_key} already exists")
            raise CreateError(f"session '{session_key}' already exists") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[SESSION] create failed for {session_key}: {e}")
            raise CreateError(f"could not create session '{session_key}'") from e
        finally:
            db.close()

    def update(self, session_key: str, new_state: Any) -> SessionRecord:
        """
        Replace the state of an existing session.

        Args:
            session_key: Unique session identifier
            new_state: New JSON state; replaces the old one entirely

        Returns:
            The updated session record

        Raises:
            UpdateError: empty key, unknown session or failed write
        """
        if not session_key:
            raise UpdateError("update requires a session_key")

        db = self.session_factory()
        try:
            row = db.query(ConvoSession).filter(ConvoSession.session_key == session_key).first()
            if row is None:
                raise SessionNotFoundError(f"session '{session_key}' does not exist")
            row.state = new_state
            previous = _aware(row.last_updated)
            now = utcnow()
            row.last_updated = max(now, previous) if previous else now
            db.commit()
            db.refresh(row)
            return _to_record(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[SESSION] update failed for {session_key}: {e}")
            raise UpdateError(f"could not update session '{session_key}'") from e
        finally:
            db.close()
