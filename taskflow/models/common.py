"""Column helpers shared by every table."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def uuid_pk() -> Column:
    return Column(String(36), primary_key=True, default=generate_uuid)


def created_at_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False, default=utc_now)


def updated_at_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
