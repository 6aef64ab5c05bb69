import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_search_service
from api.schemas.paper import SearchInterpretationResponse, SearchRequest, SearchResponse
from scrollxiv.errors import InvalidRequestError
from scrollxiv.service.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])


@router.post("", response_model=SearchResponse)
def search_papers(
    body: SearchRequest,
    search: SearchService = Depends(get_search_service),
):
    """Search arXiv (AI-interpreted when a provider is configured) and store the hits."""
    if not body.query or not body.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")

    try:
        result = search.search(body.query)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Search error")
        raise HTTPException(status_code=500, detail="Failed to search papers")

    interpretation = (
        SearchInterpretationResponse.from_interpretation(result.interpretation)
        if result.interpretation
        else None
    )
    return SearchResponse(
        papers=result.papers,
        total=result.total,
        interpretation=interpretation,
    )
