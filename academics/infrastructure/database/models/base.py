# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared mixins for ORM models.

Timestamps use Python-side defaults so that rows flushed through an
AsyncSession never carry expired server-generated attributes (which would
require a lazy refresh outside the greenlet).
"""

import enum
from datetime import datetime
from typing import Any, TypeVar
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from academics.utils.datetime import utc_now

E = TypeVar("E", bound=enum.Enum)


def new_id() -> str:
    """Generate a string UUID primary key."""
    return str(uuid4())


def enum_column(enum_cls: type[E], length: int = 20, name: str | None = None) -> sa.Enum:
    """Store an Enum by value in a VARCHAR column with a CHECK constraint.

    Pass a distinct name when one table holds two columns of the same enum,
    since the name doubles as the CHECK constraint name.
    """
    return sa.Enum(
        enum_cls,
        name=name or enum_cls.__name__.lower(),
        native_enum=False,
        create_constraint=True,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )


class Base(DeclarativeBase):
    """Declarative base for all academics tables."""

    type_annotation_map: dict[Any, Any] = {
        datetime: sa.DateTime(timezone=True),
    }


class UUIDPrimaryKeyMixin:
    """String UUID primary key."""

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=new_id)


class TimestampMixin:
    """created_at / updated_at audit columns."""

    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
