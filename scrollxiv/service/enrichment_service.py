"""
Per-paper AI enrichment: short summary, figure selection, deep analysis.

Every operation follows the same shape:
    load paper -> already enriched? return (paper, cached=True)
               -> call provider, parse reply -> persist -> (paper, cached=False)

No locking: two concurrent calls on the same paper may both hit the provider
and the second write wins.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..crawler.ar5iv_client import Ar5ivClient
from ..database.paper_repository import PaperRepository
from ..errors import PaperNotFoundError, ProviderError
from ..model.paper import Paper, PaperFigure, SelectedFigure
from .llm_service import LLMService

logger = logging.getLogger(__name__)

FALLBACK_FIGURE_REASON = "First figure"


@dataclass
class EnrichmentResult:
    paper: Paper
    cached: bool
    error: Optional[str] = None


def first_figure(figures: List[PaperFigure]) -> Optional[SelectedFigure]:
    if not figures:
        return None
    return SelectedFigure(**figures[0].model_dump(), reason=FALLBACK_FIGURE_REASON)


def resolve_selection(
    figures: List[PaperFigure],
    selected_index: int,
    reason: str,
) -> Optional[SelectedFigure]:
    """Map the LLM's 1-based pick onto the list; 0 or out of range -> no selection."""
    if selected_index < 1 or selected_index > len(figures):
        return None
    return SelectedFigure(**figures[selected_index - 1].model_dump(), reason=reason)


class EnrichmentService:
    def __init__(
        self,
        repo: PaperRepository,
        llm: LLMService,
        figure_client: Ar5ivClient,
    ):
        self.repo = repo
        self.llm = llm
        self.figure_client = figure_client

    def _load(self, paper_id: str) -> Paper:
        paper = self.repo.get_paper_by_id(paper_id)
        if not paper:
            raise PaperNotFoundError(paper_id)
        return paper

    # =====================================================
    # Short summary
    # =====================================================

    def summarize(self, paper_id: str) -> EnrichmentResult:
        paper = self._load(paper_id)
        if paper.is_summarized:
            return EnrichmentResult(paper=paper, cached=True)

        logger.info(f"🤖 Summarizing {paper.arxiv_id}")
        summary = self.llm.summarize_paper(paper.to_arxiv_paper())
        updated = self.repo.update_summary(paper.id, summary)
        return EnrichmentResult(paper=updated, cached=False)

    # =====================================================
    # Figures
    # =====================================================

    def choose_figure(self, paper: Paper, figures: List[PaperFigure]) -> Optional[SelectedFigure]:
        """
        Pick the card figure.

        Without a configured provider, or when the provider call fails, the
        first figure is used with reason "First figure".
        """
        if not figures:
            return None

        if not self.llm.is_configured():
            return first_figure(figures)

        try:
            selection = self.llm.select_figure(paper.to_arxiv_paper(), figures)
        except ProviderError as e:
            logger.error(f"❌ AI figure selection failed for {paper.arxiv_id}: {e}")
            return first_figure(figures)

        return resolve_selection(figures, selection.selected_index, selection.reason)

    def extract_figures(self, paper_id: str) -> EnrichmentResult:
        paper = self._load(paper_id)
        if paper.figures_fetched:
            return EnrichmentResult(paper=paper, cached=True)

        result = self.figure_client.extract_figures(paper.arxiv_id)

        if result.error:
            # Terminal: not retried until figures_error is cleared.
            updated = self.repo.update_figures(paper.id, [], None, result.error)
            return EnrichmentResult(paper=updated, cached=False, error=result.error)

        selected = self.choose_figure(paper, result.figures)
        updated = self.repo.update_figures(paper.id, result.figures, selected)
        return EnrichmentResult(paper=updated, cached=False)

    # =====================================================
    # Deep analysis
    # =====================================================

    def deep_summarize(self, paper_id: str) -> EnrichmentResult:
        paper = self._load(paper_id)
        if paper.deep_summary is not None:
            return EnrichmentResult(paper=paper, cached=True)

        logger.info(f"🔬 Deep summary for {paper.arxiv_id}")
        deep_summary = self.llm.deep_summarize(paper.to_arxiv_paper(), paper.figures or [])
        updated = self.repo.update_deep_summary(paper.id, deep_summary)
        return EnrichmentResult(paper=updated, cached=False)
