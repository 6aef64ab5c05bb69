from __future__ import annotations

from typing import ClassVar, List, Optional, Tuple

from pydantic import model_serializer

from scrollxiv.model.paper import CamelModel, Paper, SearchInterpretation, SortBy


class OmitNoneFieldsModel(CamelModel):
    """Leaves the listed optional keys out of the JSON when they are None."""

    omit_if_none: ClassVar[Tuple[str, ...]] = ()

    @model_serializer(mode="wrap")
    def _omit_none_fields(self, handler):
        data = handler(self)
        for name in self.omit_if_none:
            if getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                data.pop(alias, None)
                data.pop(name, None)
        return data


# --- Requests ---

class PaperIdRequest(CamelModel):
    paper_id: Optional[str] = None


class SearchRequest(CamelModel):
    query: Optional[str] = None


class PaperActionRequest(CamelModel):
    action: Optional[str] = None  # save | unsave | discard | undiscard | seen


# --- Feed ---

class FeedResponse(OmitNoneFieldsModel):
    omit_if_none: ClassVar[Tuple[str, ...]] = ("next_cursor",)

    papers: List[Paper]
    next_cursor: Optional[str] = None
    has_more: bool


# --- Search ---

class SearchInterpretationResponse(CamelModel):
    query: str
    categories: List[str]
    sort_by: SortBy
    explanation: str

    @classmethod
    def from_interpretation(cls, interpretation: SearchInterpretation) -> SearchInterpretationResponse:
        return cls(
            query=interpretation.search_query,
            categories=interpretation.categories,
            sort_by=interpretation.sort_by,
            explanation=interpretation.explanation,
        )


class SearchResponse(OmitNoneFieldsModel):
    omit_if_none: ClassVar[Tuple[str, ...]] = ("interpretation",)

    papers: List[Paper]
    total: int
    interpretation: Optional[SearchInterpretationResponse] = None


# --- Enrichment ---

class EnrichmentResponse(CamelModel):
    paper: Paper
    cached: bool


class FiguresResponse(CamelModel):
    paper: Paper
    cached: bool
    error: Optional[str] = None


# --- Single paper ---

class PaperDetailResponse(CamelModel):
    paper: Paper
    saved: bool
    discarded: bool


class PaperActionResponse(CamelModel):
    saved: Optional[bool] = None
    discarded: Optional[bool] = None
    seen: Optional[bool] = None


class SavedPapersResponse(CamelModel):
    papers: List[Paper]
