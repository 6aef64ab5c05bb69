from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone


SortBy = Literal["relevance", "submittedDate"]


class CamelModel(BaseModel):
    """
    Base for every value type that crosses the wire.

    Python code uses snake_case, JSON (API + LLM replies) uses camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ArxivPaper(CamelModel):
    """
    Normalized bibliographic record as returned by the arXiv adapter.
    """

    arxiv_id: str
    title: str
    authors: List[str] = Field(default_factory=list)
    abstract: str
    categories: List[str] = Field(default_factory=list)
    published_date: datetime
    pdf_url: str

    @field_validator("published_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class PaperFigure(CamelModel):
    index: int  # 1-based, document order
    url: str
    caption: str
    alt: Optional[str] = None


class SelectedFigure(PaperFigure):
    reason: str


class PaperSummary(CamelModel):
    hook: str
    key_concepts: List[str] = Field(default_factory=list)
    summary: str
    why_matters: str


class FigureAnalysis(CamelModel):
    figure_index: int
    description: str
    significance: str


class DeepSummary(CamelModel):
    category: str
    problem: str
    contributions: List[str] = Field(default_factory=list)
    technical_approach: str
    prior_work: str
    evaluation: str
    strengths: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    implications: str
    figure_analysis: List[FigureAnalysis] = Field(default_factory=list)


class FigureSelection(CamelModel):
    """Raw figure pick from the LLM; 0 means "nothing suitable"."""
    selected_index: int
    reason: str = ""


class SearchInterpretation(CamelModel):
    search_query: str
    categories: List[str] = Field(default_factory=list)
    sort_by: SortBy = "relevance"
    explanation: str = ""


class Paper(ArxivPaper):
    """
    Paper 数据模型
    - stored record = bibliographic fields + nullable enrichment
    """

    id: str

    # AI enrichment (null until generated)
    hook: Optional[str] = None
    key_concepts: Optional[List[str]] = None
    summary: Optional[str] = None
    why_matters: Optional[str] = None
    deep_summary: Optional[DeepSummary] = None

    # Figures: both None -> never fetched
    figures: Optional[List[PaperFigure]] = None
    selected_figure: Optional[SelectedFigure] = None
    figures_error: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_summarized(self) -> bool:
        return bool(self.hook and self.summary)

    @property
    def figures_fetched(self) -> bool:
        return self.figures is not None or self.figures_error is not None

    def to_arxiv_paper(self) -> ArxivPaper:
        return ArxivPaper.model_validate(self.model_dump(include=set(ArxivPaper.model_fields)))
