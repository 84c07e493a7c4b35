"""Core SQLAlchemy models (2.x style) for the roster schema.

The person table carries precomputed callsign search keys; they are
maintained here on every callsign assignment.
"""

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from .search.normalization import normalize_callsign, spell_out_numbers
from .search.phonetic import metaphone
from .search.types import PersonRecord, PersonStatus

# Callsigns generated on reset, e.g. SmithJ19, Smith2J19B, DoeA21(NR)
_GENERATED_CALLSIGN = re.compile(r"\d{2,4}B?(\(NR\))?$")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def split_commas(value: str | None) -> list[str]:
    """Split a comma-joined list, trimming around each comma."""
    if not value or not value.strip():
        return []
    return re.split(r"\s*,\s*", value.strip())


class Person(Base):
    """People on the roster."""
    __tablename__ = "person"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    callsign: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    callsign_normalized: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    callsign_soundex: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255))
    first_name: Mapped[str | None] = mapped_column(String(255))
    last_name: Mapped[str | None] = mapped_column(String(255))
    formerly_known_as: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=PersonStatus.PROSPECTIVE.value)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    alerts: Mapped[list[AlertPerson]] = relationship("AlertPerson", back_populates="person")

    __table_args__ = (
        Index("ix_person_callsign_normalized", "callsign_normalized"),
        Index("ix_person_callsign_soundex", "callsign_soundex"),
        Index("ix_person_email", "email"),
        Index("ix_person_status", "status"),
    )

    @validates("callsign")
    def _set_callsign(self, key: str, value: str | None) -> str:
        """Keep the derived search keys and the FKA history in sync."""
        value = (value or "").strip()
        normalized = normalize_callsign(value)
        self.callsign_normalized = normalized
        self.callsign_soundex = metaphone(spell_out_numbers(normalized))

        old = self.callsign
        if old and old != value:
            fka = self.formerly_known_as
            if not fka:
                self.formerly_known_as = old
            elif old.lower() not in fka.lower():
                self.formerly_known_as = f"{fka},{old}"

        return value

    def formerly_known_as_list(self, filter_generated: bool = False) -> list[str]:
        """Prior callsigns, optionally without auto-generated ones."""
        names = split_commas(self.formerly_known_as)
        if not filter_generated:
            return names
        return [name for name in names if not _GENERATED_CALLSIGN.search(name)]

    def to_record(self) -> PersonRecord:
        return PersonRecord(
            id=self.id,
            callsign=self.callsign,
            callsign_normalized=self.callsign_normalized,
            callsign_soundex=self.callsign_soundex,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            formerly_known_as=self.formerly_known_as,
            status=self.status,
        )


class AlertPerson(Base):
    """Per-person notification preferences for an alert channel."""
    __tablename__ = "alert_person"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[int] = mapped_column(ForeignKey("person.id", ondelete="CASCADE"), nullable=False, index=True)
    alert_id: Mapped[int] = mapped_column(Integer, nullable=False)
    use_email: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    use_sms: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationship
    person: Mapped[Person] = relationship("Person", back_populates="alerts")

    __table_args__ = (
        Index("ix_alert_person_person_alert", "person_id", "alert_id", unique=True),
    )
