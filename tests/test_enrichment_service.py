"""
Test for per-paper enrichment (summary, figures, deep analysis)
"""
import threading

import pytest

from conftest import FakeCompletion, make_arxiv_paper, make_settings
from scrollxiv.crawler.ar5iv_client import NOT_AVAILABLE_ERROR, FigureExtractionResult
from scrollxiv.database.db.models import Base
from scrollxiv.database.db.session import create_db_engine, create_session_factory
from scrollxiv.database.paper_repository import PaperRepository
from scrollxiv.errors import PaperNotFoundError, ProviderError
from scrollxiv.model.paper import PaperFigure, PaperSummary
from scrollxiv.service.enrichment_service import (
    FALLBACK_FIGURE_REASON,
    EnrichmentService,
    resolve_selection,
)
from scrollxiv.service.llm_service import LLMService


SUMMARY_REPLY = {
    "hook": "Robots learn to fold laundry.",
    "keyConcepts": ["imitation learning", "deformables"],
    "summary": "A policy for cloth manipulation.",
    "whyMatters": "Household robotics.",
}

DEEP_REPLY = {
    "category": "empirical study",
    "problem": "Cloth is hard.",
    "contributions": ["A dataset"],
    "technicalApproach": "Diffusion policy.",
    "priorWork": "Extends prior imitation work.",
    "evaluation": "Real robot trials.",
    "strengths": ["Real hardware"],
    "limitations": ["One robot"],
    "implications": "Better home robots.",
    "figureAnalysis": [{"figureIndex": 2, "description": "Success rates", "significance": "Headline result"}],
}

FIGURES = [
    PaperFigure(index=1, url="https://ar5iv.labs.arxiv.org/html/x/x1.png", caption="Figure 1: Setup"),
    PaperFigure(index=2, url="https://ar5iv.labs.arxiv.org/html/x/x2.png", caption="Figure 2: Results"),
]


class FakeFigureClient:
    def __init__(self, figures=None, error=None):
        self.result = FigureExtractionResult(figures=figures or [], error=error)
        self.calls = []

    def extract_figures(self, arxiv_id):
        self.calls.append(arxiv_id)
        return self.result


def make_service(repo, *replies, figure_client=None, configured=True, exc=None):
    completion = FakeCompletion(*replies, exc=exc)
    settings = make_settings(anthropic_api_key="sk-ant" if configured else None)
    service = EnrichmentService(
        repo,
        LLMService(settings, completion_fn=completion),
        figure_client or FakeFigureClient(FIGURES),
    )
    return service, completion


@pytest.fixture
def paper(repo):
    return repo.upsert_paper(make_arxiv_paper("2401.00001"))


class TestSummarize:
    def test_fresh_summary_is_persisted(self, repo, paper):
        service, completion = make_service(repo, SUMMARY_REPLY)

        result = service.summarize(paper.id)

        assert not result.cached
        assert result.paper.hook == "Robots learn to fold laundry."
        assert repo.get_paper_by_id(paper.id).key_concepts == ["imitation learning", "deformables"]
        assert len(completion.calls) == 1

    def test_cached_summary_skips_provider(self, repo, paper):
        repo.update_summary(paper.id, PaperSummary(
            hook="Already here.", key_concepts=[], summary="Done.", why_matters="-",
        ))
        service, completion = make_service(repo, SUMMARY_REPLY)

        result = service.summarize(paper.id)

        assert result.cached
        assert result.paper.hook == "Already here."
        assert completion.calls == []

    def test_invalid_reply_leaves_record_untouched(self, repo, paper):
        service, _ = make_service(repo, "I cannot help with that.")

        with pytest.raises(ProviderError):
            service.summarize(paper.id)

        assert repo.get_paper_by_id(paper.id).hook is None

    def test_concurrent_summaries_leave_one_complete_record(self, tmp_path):
        engine = create_db_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(bind=engine)
        file_repo = PaperRepository(create_session_factory(engine))
        paper = file_repo.upsert_paper(make_arxiv_paper("2401.00001"))
        service, _ = make_service(file_repo, SUMMARY_REPLY, SUMMARY_REPLY)

        barrier = threading.Barrier(2)
        results, errors = [], []

        def worker():
            barrier.wait()
            try:
                results.append(service.summarize(paper.id))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
        assert len(results) == 2

        stored = file_repo.get_paper_by_id(paper.id)
        assert stored.hook == "Robots learn to fold laundry."
        assert stored.key_concepts == ["imitation learning", "deformables"]
        assert stored.summary == "A policy for cloth manipulation."
        assert stored.why_matters == "Household robotics."
        assert file_repo.count() == 1
        engine.dispose()

    def test_unknown_paper(self, repo):
        service, _ = make_service(repo, SUMMARY_REPLY)
        with pytest.raises(PaperNotFoundError):
            service.summarize("nope")


class TestResolveSelection:
    def test_one_based(self):
        selected = resolve_selection(FIGURES, 2, "Results chart")
        assert selected.index == 2
        assert selected.reason == "Results chart"

    def test_zero_and_out_of_range(self):
        assert resolve_selection(FIGURES, 0, "No suitable visual figures found") is None
        assert resolve_selection(FIGURES, 3, "oops") is None
        assert resolve_selection(FIGURES, -1, "oops") is None


class TestExtractFigures:
    def test_ai_selection(self, repo, paper):
        service, _ = make_service(repo, {"selectedIndex": 2, "reason": "Clear results"})

        result = service.extract_figures(paper.id)

        assert not result.cached
        assert result.error is None
        assert [f.index for f in result.paper.figures] == [1, 2]
        assert result.paper.selected_figure.url == FIGURES[1].url
        assert result.paper.selected_figure.reason == "Clear results"

    def test_ai_rejects_all_figures(self, repo, paper):
        service, _ = make_service(repo, {"selectedIndex": 0, "reason": "No suitable visual figures found"})

        result = service.extract_figures(paper.id)

        assert len(result.paper.figures) == 2
        assert result.paper.selected_figure is None

    def test_without_provider_uses_first_figure(self, repo, paper):
        service, completion = make_service(repo, configured=False)

        result = service.extract_figures(paper.id)

        assert result.paper.selected_figure.index == 1
        assert result.paper.selected_figure.reason == FALLBACK_FIGURE_REASON
        assert completion.calls == []

    def test_provider_failure_uses_first_figure(self, repo, paper):
        service, _ = make_service(repo, exc=RuntimeError("overloaded"))

        result = service.extract_figures(paper.id)

        assert result.paper.selected_figure.index == 1
        assert result.paper.selected_figure.reason == FALLBACK_FIGURE_REASON

    def test_no_figures(self, repo, paper):
        figure_client = FakeFigureClient([])
        service, completion = make_service(repo, figure_client=figure_client)

        result = service.extract_figures(paper.id)

        assert result.paper.figures == []
        assert result.paper.selected_figure is None
        assert completion.calls == []

    def test_error_is_terminal(self, repo, paper):
        figure_client = FakeFigureClient(error=NOT_AVAILABLE_ERROR)
        service, _ = make_service(repo, figure_client=figure_client)

        first = service.extract_figures(paper.id)
        assert not first.cached
        assert first.error == NOT_AVAILABLE_ERROR
        assert first.paper.figures == []
        assert first.paper.figures_error == NOT_AVAILABLE_ERROR

        second = service.extract_figures(paper.id)
        assert second.cached
        assert second.paper.figures_error == NOT_AVAILABLE_ERROR
        assert figure_client.calls == ["2401.00001"]

    def test_cached_figures(self, repo, paper):
        figure_client = FakeFigureClient(FIGURES)
        service, _ = make_service(repo, {"selectedIndex": 1, "reason": "Setup"}, figure_client=figure_client)

        service.extract_figures(paper.id)
        result = service.extract_figures(paper.id)

        assert result.cached
        assert len(figure_client.calls) == 1


class TestDeepSummarize:
    def test_fresh_then_cached(self, repo, paper):
        service, completion = make_service(repo, DEEP_REPLY)

        first = service.deep_summarize(paper.id)
        assert not first.cached
        assert first.paper.deep_summary.technical_approach == "Diffusion policy."
        assert first.paper.deep_summary.figure_analysis[0].figure_index == 2
        assert completion.calls[0]["max_tokens"] == 4096

        second = service.deep_summarize(paper.id)
        assert second.cached
        assert len(completion.calls) == 1

    def test_prompt_lists_known_figures(self, repo, paper):
        repo.update_figures(paper.id, FIGURES, None)
        service, completion = make_service(repo, DEEP_REPLY)

        service.deep_summarize(paper.id)

        prompt = completion.calls[0]["messages"][0]["content"]
        assert 'Figure 2: "Figure 2: Results"' in prompt

    def test_prompt_without_figures(self, repo, paper):
        service, completion = make_service(repo, DEEP_REPLY)
        service.deep_summarize(paper.id)
        assert "(no figures available)" in completion.calls[0]["messages"][0]["content"]
