import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_mark_repo, get_paper_repo
from api.schemas.paper import (
    PaperActionRequest,
    PaperActionResponse,
    PaperDetailResponse,
    SavedPapersResponse,
)
from scrollxiv.database.paper_mark_repository import PaperMarkRepository
from scrollxiv.database.paper_repository import PaperRepository
from scrollxiv.errors import PaperNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/papers", tags=["papers"])


@router.get("/saved", response_model=SavedPapersResponse)
def list_saved(
    marks: PaperMarkRepository = Depends(get_mark_repo),
):
    """Bookmarked papers, newest bookmark first."""
    try:
        papers = marks.list_saved()
    except Exception:
        logger.exception("List saved error")
        raise HTTPException(status_code=500, detail="Failed to list saved papers")
    return SavedPapersResponse(papers=papers)


@router.get("/{paper_id}", response_model=PaperDetailResponse)
def get_paper(
    paper_id: str,
    repo: PaperRepository = Depends(get_paper_repo),
    marks: PaperMarkRepository = Depends(get_mark_repo),
):
    """Get a single paper by ID."""
    try:
        paper = repo.get_paper_by_id(paper_id)
        if not paper:
            raise HTTPException(status_code=404, detail="Paper not found")
        saved = marks.is_saved(paper_id)
        discarded = marks.is_discarded(paper_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get paper error")
        raise HTTPException(status_code=500, detail="Failed to get paper")

    return PaperDetailResponse(paper=paper, saved=saved, discarded=discarded)


@router.post(
    "/{paper_id}",
    response_model=PaperActionResponse,
    response_model_exclude_none=True,
)
def paper_action(
    paper_id: str,
    body: PaperActionRequest,
    marks: PaperMarkRepository = Depends(get_mark_repo),
):
    """save | unsave | discard | undiscard | seen"""
    action = body.action
    try:
        if action == "save":
            marks.save(paper_id)
            return PaperActionResponse(saved=True)
        if action == "unsave":
            marks.unsave(paper_id)
            return PaperActionResponse(saved=False)
        if action == "discard":
            marks.discard(paper_id)
            return PaperActionResponse(discarded=True)
        if action == "undiscard":
            marks.undiscard(paper_id)
            return PaperActionResponse(discarded=False)
        if action == "seen":
            marks.mark_seen(paper_id)
            return PaperActionResponse(seen=True)
    except PaperNotFoundError:
        raise HTTPException(status_code=404, detail="Paper not found")
    except Exception:
        logger.exception("Paper action error")
        raise HTTPException(status_code=500, detail="Failed to perform action")

    raise HTTPException(status_code=400, detail="Invalid action")
