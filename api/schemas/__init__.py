from .paper import (
    EnrichmentResponse,
    FeedResponse,
    FiguresResponse,
    PaperActionRequest,
    PaperActionResponse,
    PaperDetailResponse,
    PaperIdRequest,
    SavedPapersResponse,
    SearchInterpretationResponse,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "EnrichmentResponse",
    "FeedResponse",
    "FiguresResponse",
    "PaperActionRequest",
    "PaperActionResponse",
    "PaperDetailResponse",
    "PaperIdRequest",
    "SavedPapersResponse",
    "SearchInterpretationResponse",
    "SearchRequest",
    "SearchResponse",
]
