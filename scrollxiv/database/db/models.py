import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import TypeAdapter
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

from scrollxiv.model.paper import DeepSummary, PaperFigure, SelectedFigure


Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class PydanticJSON(TypeDecorator):
    """
    JSON column bound to a pydantic type.

    Values are validated on the way in and on the way out, so a row can only
    ever hold (and yield) well-formed structures. Stored keys are camelCase,
    the same shape the API serves.
    """

    impl = JSON
    cache_ok = True

    def __init__(self, pydantic_type: Any, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pydantic_type = pydantic_type
        self.adapter = TypeAdapter(pydantic_type)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = self.adapter.validate_python(value)
        return self.adapter.dump_python(value, mode="json", by_alias=True)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.adapter.validate_python(value)


class PaperRow(Base):
    __tablename__ = "papers"

    id = Column(Text, primary_key=True, default=new_id)
    arxiv_id = Column(Text, nullable=False, unique=True, index=True)

    title = Column(Text, nullable=False)
    authors = Column(PydanticJSON(List[str]), nullable=False)
    abstract = Column(Text, nullable=False)
    categories = Column(PydanticJSON(List[str]), nullable=False)
    published_date = Column(DateTime(timezone=True), nullable=False, index=True)
    pdf_url = Column(Text, nullable=False)

    # AI enrichment
    hook = Column(Text)
    key_concepts = Column(PydanticJSON(Optional[List[str]]))
    summary = Column(Text)
    why_matters = Column(Text)
    deep_summary = Column(PydanticJSON(Optional[DeepSummary]))

    # Figures
    figures = Column(PydanticJSON(Optional[List[PaperFigure]]))
    selected_figure = Column(PydanticJSON(Optional[SelectedFigure]))
    figures_error = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    saved_mark = relationship("SavedMarkRow", back_populates="paper", uselist=False)
    seen_mark = relationship("SeenMarkRow", back_populates="paper", uselist=False)


class SavedMarkRow(Base):
    """Bookmark; existence is the signal."""
    __tablename__ = "saved_papers"

    id = Column(Text, primary_key=True, default=new_id)
    paper_id = Column(Text, ForeignKey("papers.id"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    paper = relationship("PaperRow", back_populates="saved_mark")


class SeenMarkRow(Base):
    """Shown (discarded=False) or explicitly not interesting (discarded=True)."""
    __tablename__ = "seen_papers"

    id = Column(Text, primary_key=True, default=new_id)
    paper_id = Column(Text, ForeignKey("papers.id"), nullable=False, unique=True)
    discarded = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    paper = relationship("PaperRow", back_populates="seen_mark")
