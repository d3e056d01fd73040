"""
ORM models for the Cidian dictionary database.

One row in `entry` per CC-CEDICT line; glosses are stored in their own
table in dictionary order.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Entry(Base):
    """A dictionary line: headwords, numbered pinyin and glosses."""

    __tablename__ = "entry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    traditional = Column(String(64), nullable=False, index=True)
    simplified = Column(String(64), nullable=False, index=True)
    # Space separated numbered syllables, lower-cased ("zhong1 wen2")
    pinyin = Column(Text, nullable=False)

    glosses = relationship(
        "Gloss",
        back_populates="entry",
        order_by="Gloss.ord",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Entry {self.id} {self.simplified} [{self.pinyin}]>"


class Gloss(Base):
    """English definition of an entry."""

    __tablename__ = "gloss"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(Integer, ForeignKey("entry.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    ord = Column(Integer, nullable=False, default=0)

    entry = relationship("Entry", back_populates="glosses")
