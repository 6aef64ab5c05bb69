import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_enrichment_service, get_llm_service
from api.schemas.paper import EnrichmentResponse, FiguresResponse, PaperIdRequest
from scrollxiv.errors import PaperNotFoundError, ProviderNotConfiguredError
from scrollxiv.service.enrichment_service import EnrichmentService
from scrollxiv.service.llm_service import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["enrichment"])


def _require_paper_id(body: PaperIdRequest) -> str:
    if not body.paper_id:
        raise HTTPException(status_code=400, detail="Paper ID is required")
    return body.paper_id


@router.post("/summarize", response_model=EnrichmentResponse)
def summarize(
    body: PaperIdRequest,
    enrichment: EnrichmentService = Depends(get_enrichment_service),
    llm: LLMService = Depends(get_llm_service),
):
    """Short feed summary (hook, key concepts, summary, why it matters)."""
    paper_id = _require_paper_id(body)
    if not llm.is_configured():
        raise HTTPException(status_code=503, detail="AI provider is not configured")

    try:
        result = enrichment.summarize(paper_id)
    except PaperNotFoundError:
        raise HTTPException(status_code=404, detail="Paper not found")
    except ProviderNotConfiguredError:
        raise HTTPException(status_code=503, detail="AI provider is not configured")
    except Exception:
        logger.exception("Summarize error")
        raise HTTPException(status_code=500, detail="Failed to summarize paper")

    return EnrichmentResponse(paper=result.paper, cached=result.cached)


@router.post("/deep-summary", response_model=EnrichmentResponse)
def deep_summary(
    body: PaperIdRequest,
    enrichment: EnrichmentService = Depends(get_enrichment_service),
    llm: LLMService = Depends(get_llm_service),
):
    """Long-form structured analysis."""
    paper_id = _require_paper_id(body)
    if not llm.is_configured():
        raise HTTPException(status_code=503, detail="AI is not configured")

    try:
        result = enrichment.deep_summarize(paper_id)
    except PaperNotFoundError:
        raise HTTPException(status_code=404, detail="Paper not found")
    except ProviderNotConfiguredError:
        raise HTTPException(status_code=503, detail="AI is not configured")
    except Exception:
        logger.exception("Deep summary error")
        raise HTTPException(status_code=500, detail="Failed to generate deep summary")

    return EnrichmentResponse(paper=result.paper, cached=result.cached)


@router.post("/figures", response_model=FiguresResponse)
def figures(
    body: PaperIdRequest,
    enrichment: EnrichmentService = Depends(get_enrichment_service),
):
    """Extract ar5iv figures and pick the card figure; works without a provider."""
    paper_id = _require_paper_id(body)

    try:
        result = enrichment.extract_figures(paper_id)
    except PaperNotFoundError:
        raise HTTPException(status_code=404, detail="Paper not found")
    except Exception:
        logger.exception("Figures error")
        raise HTTPException(status_code=500, detail="Failed to extract figures")

    return FiguresResponse(paper=result.paper, cached=result.cached, error=result.error)
