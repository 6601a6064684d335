"""
SQLAlchemy ORM Models for the IPTV Guide Service

Favorites and hidden items reference playlist channels and groups by the
opaque identifiers produced by the parsers.
"""
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Favorite(Base):
    """Channel or group marked as favorite within a source"""
    __tablename__ = "favorites"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    source_id: Mapped[str] = mapped_column(String, nullable=False)
    item_type: Mapped[str] = mapped_column(String, nullable=False, default="channel")
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("source_id", "item_type", "item_id", name="uq_favorite_item"),
        Index("idx_favorites_source", "source_id", "item_type"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(source_id={self.source_id}, item_type={self.item_type}, item_id={self.item_id})>"


class HiddenItem(Base):
    """Channel or group hidden from listings within a source"""
    __tablename__ = "hidden_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    source_id: Mapped[str] = mapped_column(String, nullable=False)
    item_type: Mapped[str] = mapped_column(String, nullable=False)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("source_id", "item_type", "item_id", name="uq_hidden_item"),
        Index("idx_hidden_items_source", "source_id"),
    )

    def __repr__(self) -> str:
        return f"<HiddenItem(source_id={self.source_id}, item_type={self.item_type}, item_id={self.item_id})>"
