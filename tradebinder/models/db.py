"""
SQLAlchemy ORM models for persistent storage.

Models mirror the inventory dataclasses but add database persistence.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class InventoryCardDB(Base):
    """
    One printing in the inventory, keyed by "<set code>:<card number>".

    Also stores the catalog snapshot the finishes were validated against.
    """

    __tablename__ = "inventory_cards"

    card_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    set_code: Mapped[str] = mapped_column(String(16), index=True)
    card_number: Mapped[str] = mapped_column(String(32))

    # Raw catalog payload and when it goes stale
    catalog: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    catalog_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationship to per-finish ownership rows
    finishes: Mapped[list["CardFinishDB"]] = relationship(
        back_populates="card",
        cascade="all, delete-orphan",
        order_by="CardFinishDB.position",
    )

    def __repr__(self) -> str:
        return f"<InventoryCardDB(card_id={self.card_id})>"


class CardFinishDB(Base):
    """
    Owned copies of one finish of a card.

    `position` preserves the order finishes were added in.
    """

    __tablename__ = "card_finishes"
    __table_args__ = (UniqueConstraint("card_id", "finish", name="uq_card_finish"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("inventory_cards.card_id", ondelete="CASCADE"), index=True
    )
    finish: Mapped[str] = mapped_column(String(64))
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    notes: Mapped[str] = mapped_column(Text, default="")
    position: Mapped[int] = mapped_column(Integer, default=0)

    # Relationship back to card
    card: Mapped["InventoryCardDB"] = relationship(back_populates="finishes")

    def __repr__(self) -> str:
        return f"<CardFinishDB(card={self.card_id}, finish={self.finish}, qty={self.quantity})>"
