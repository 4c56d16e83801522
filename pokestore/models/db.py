"""
SQLAlchemy ORM models for persistent storage.

Rows mirror the canonical snapshot records so the catalog front-end can
read either the JSON snapshots or the database. English and Japanese
cards, sets and prices live in parallel tables sharing one column layout.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PokemonDB(Base):
    """A species from the national Pokédex."""

    __tablename__ = "pokemons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), index=True)

    def __repr__(self) -> str:
        return f"<PokemonDB(id={self.id}, name={self.name})>"


class TypeDB(Base):
    """An energy type name seen on at least one English card."""

    __tablename__ = "types"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)

    def __repr__(self) -> str:
        return f"<TypeDB(name={self.name})>"


class SetColumns:
    """Columns shared by the English and Japanese set tables."""

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    logo: Mapped[str | None] = mapped_column(Text, nullable=True)
    printed_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    official_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ptcgo_code: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    release_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    series: Mapped[str | None] = mapped_column(String(100), nullable=True)
    aliases: Mapped[list[Any]] = mapped_column(JSON, default=list)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(name={self.name}, printed_total={self.printed_total})>"


class SetDB(SetColumns, Base):
    """A canonical card set keyed by its unique name."""

    __tablename__ = "sets"


class JpSetDB(SetColumns, Base):
    """A Japanese set summarized from scraped cards."""

    __tablename__ = "jp_sets"


class CardColumns:
    """Columns shared by the English and Japanese card tables."""

    card_code: Mapped[str] = mapped_column(String(120), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    artist: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rarity: Mapped[str | None] = mapped_column(String(100), nullable=True)
    supertype: Mapped[str] = mapped_column(String(20))
    types: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    pokemon_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    card_market_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    card_market_updated_at: Mapped[str | None] = mapped_column(String(30), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(card_code={self.card_code}, name={self.name})>"


class CardDB(CardColumns, Base):
    """A canonical card printing keyed by cardCode."""

    __tablename__ = "cards"

    set_name: Mapped[str] = mapped_column(String(255), index=True)


class JpCardDB(CardColumns, Base):
    """A scraped Japanese card; set_name is NULL when jp_sets does not know the set."""

    __tablename__ = "jp_cards"

    set_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)


class PriceColumns:
    """Price figures for one card; NULL columns mean the figure is unknown."""

    simple: Mapped[float | None] = mapped_column(Float, nullable=True)
    low: Mapped[float | None] = mapped_column(Float, nullable=True)
    trend: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg1: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg7: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg30: Mapped[float | None] = mapped_column(Float, nullable=True)
    reverse_simple: Mapped[float | None] = mapped_column(Float, nullable=True)
    reverse_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    reverse_trend: Mapped[float | None] = mapped_column(Float, nullable=True)
    reverse_avg1: Mapped[float | None] = mapped_column(Float, nullable=True)
    reverse_avg7: Mapped[float | None] = mapped_column(Float, nullable=True)
    reverse_avg30: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(card_code={self.card_code})>"


class PriceDB(PriceColumns, Base):
    """Price figures for one English card."""

    __tablename__ = "prices"

    card_code: Mapped[str] = mapped_column(
        String(120), ForeignKey("cards.card_code", ondelete="CASCADE"), primary_key=True
    )


class JpPriceDB(PriceColumns, Base):
    """Listed market price for one Japanese card."""

    __tablename__ = "jp_prices"

    card_code: Mapped[str] = mapped_column(
        String(120), ForeignKey("jp_cards.card_code", ondelete="CASCADE"), primary_key=True
    )
