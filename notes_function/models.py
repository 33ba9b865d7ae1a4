from sqlalchemy import Column, Integer, Text

from notes_function.db import Base


class Note(Base):
    """SQLAlchemy model representing a note."""
    __tablename__ = "notes"
    # SQLite only: never reuse ids of removed rows.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
