"""
LLM provider layer.

- provider switch (claude | openai) resolved on every call
- single-turn completion through litellm
- code-fence tolerant JSON reply parsing into pydantic models
- the fixed prompt templates used by enrichment and search
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, List, Literal, Optional, Type, TypeVar

import litellm
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..errors import ProviderError, ProviderNotConfiguredError
from ..model.paper import (
    ArxivPaper,
    DeepSummary,
    FigureSelection,
    PaperFigure,
    PaperSummary,
    SearchInterpretation,
)

logger = logging.getLogger(__name__)

Provider = Literal["claude", "openai"]
T = TypeVar("T", bound=BaseModel)


# =========================================================
# 🔹 1. Prompt templates
# =========================================================

SUMMARIZE_PROMPT = """You are an expert science communicator. Given this arXiv paper, create engaging content for a social-media style feed.

Paper Title: {title}
Authors: {authors}
Abstract: {abstract}
Categories: {categories}

Create the following (respond ONLY with valid JSON, no markdown):
{{
  "hook": "A single attention-grabbing sentence that makes someone want to learn more (think Twitter/TikTok hook)",
  "keyConcepts": ["concept 1", "concept 2", "concept 3"],
  "summary": "2-3 sentence summary accessible to someone with a CS degree",
  "whyMatters": "1-2 sentences on real-world significance and implications"
}}

Keep it engaging but accurate. No hype, just clear communication."""


SEARCH_PROMPT = """Convert this natural language search into an arXiv API query.

User query: "{query}"

ArXiv categories reference:
- cs.AI: Artificial Intelligence
- cs.LG: Machine Learning
- cs.CL: Computation and Language (NLP)
- cs.CV: Computer Vision
- cs.NE: Neural and Evolutionary Computing
- stat.ML: Machine Learning (Statistics)
- cs.RO: Robotics
- cs.CR: Cryptography and Security

Respond ONLY with valid JSON (no markdown):
{{
  "searchQuery": "keywords to search for (space-separated)",
  "categories": ["relevant", "category", "codes"],
  "sortBy": "relevance" or "submittedDate",
  "explanation": "brief explanation of why these parameters match user intent"
}}"""


SELECT_FIGURE_PROMPT = """You are selecting the most visually compelling figure from an arXiv paper for a TikTok-style feed.

Paper Title: {title}
Paper Abstract: {abstract}

Available Figures:
{figures}

Select the BEST figure for social media engagement. Consider:
1. Visual impact - diagrams, charts, and results are more engaging than tables or equations
2. Comprehensibility - figures that convey key findings without reading the paper
3. "Wow factor" - surprising results, clear comparisons, interesting visualizations

Respond ONLY with valid JSON (no markdown):
{{
  "selectedIndex": <1-based figure index>,
  "reason": "Brief explanation of why this figure best represents the paper's key contribution"
}}

If no figures are suitable (all are tables, equations, or low quality), respond:
{{
  "selectedIndex": 0,
  "reason": "No suitable visual figures found"
}}"""


DEEP_SUMMARY_PROMPT = """You are an expert reviewer writing an in-depth analysis of an arXiv paper for a technically literate reader.

Paper Title: {title}
Authors: {authors}
Abstract: {abstract}
Categories: {categories}

Figures (1-based index and caption):
{figures}

Respond ONLY with valid JSON (no markdown):
{{
  "category": "Type of paper, e.g. novel architecture, benchmark study, theoretical analysis, empirical study, survey",
  "problem": "The problem addressed and why it matters",
  "contributions": ["Core contribution and how it differs from prior work", "..."],
  "technicalApproach": "Detailed explanation of the method: architectures, algorithms, formulations",
  "priorWork": "Relation to existing literature, what is new versus adapted",
  "evaluation": "Datasets, benchmarks, metrics and key quantitative results",
  "strengths": ["What the paper does particularly well", "..."],
  "limitations": ["Weaknesses, missing experiments, questionable assumptions", "..."],
  "implications": "Future research directions and real-world impact",
  "figureAnalysis": [
    {{"figureIndex": 1, "description": "What the figure shows", "significance": "Why it matters for the paper's argument"}}
  ]
}}

Only analyze figures from the list above; use an empty figureAnalysis list when there are none.
Be precise and critical. Do NOT invent results that the abstract does not support."""


def _paper_fields(paper: ArxivPaper) -> dict:
    return {
        "title": paper.title,
        "authors": ", ".join(paper.authors),
        "abstract": paper.abstract,
        "categories": ", ".join(paper.categories),
    }


def _figures_text(figures: List[PaperFigure]) -> str:
    return "\n".join(f'Figure {f.index}: "{f.caption}"' for f in figures)


def build_summarize_prompt(paper: ArxivPaper) -> str:
    return SUMMARIZE_PROMPT.format(**_paper_fields(paper))


def build_search_prompt(query: str) -> str:
    return SEARCH_PROMPT.format(query=query)


def build_select_figure_prompt(paper: ArxivPaper, figures: List[PaperFigure]) -> str:
    return SELECT_FIGURE_PROMPT.format(
        title=paper.title,
        abstract=paper.abstract[:1000],
        figures=_figures_text(figures),
    )


def build_deep_summary_prompt(paper: ArxivPaper, figures: List[PaperFigure]) -> str:
    return DEEP_SUMMARY_PROMPT.format(
        **_paper_fields(paper),
        figures=_figures_text(figures) or "(no figures available)",
    )


# =========================================================
# 🔹 2. Reply parsing
# =========================================================

FENCE_RE = re.compile(r"```(?:json)?\s*\n?")


def parse_json_reply(text: str, model: Type[T]) -> T:
    """Parse a JSON reply, tolerating a ```json ... ``` wrapper."""
    cleaned = FENCE_RE.sub("", text or "").strip()
    try:
        return model.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ProviderError(f"Invalid {model.__name__} reply from LLM: {e}") from e


# =========================================================
# 🔹 3. Provider wrapper
# =========================================================

CompletionFn = Callable[..., object]


class LLMService:
    """
    One instance per Settings. completion_fn defaults to litellm.completion and
    can be swapped for a fake in tests.
    """

    def __init__(self, settings: Settings, completion_fn: Optional[CompletionFn] = None):
        self.settings = settings
        self.completion_fn = completion_fn or litellm.completion

    # --- provider selection ---

    def provider(self) -> Provider:
        return "openai" if (self.settings.ai_provider or "").lower() == "openai" else "claude"

    def _api_key(self, provider: Provider) -> Optional[str]:
        if provider == "openai":
            return self.settings.openai_api_key
        return self.settings.anthropic_api_key

    def is_configured(self) -> bool:
        return bool(self._api_key(self.provider()))

    def configured_provider(self) -> Optional[Provider]:
        """First provider that has credentials, regardless of the switch."""
        if self.settings.anthropic_api_key:
            return "claude"
        if self.settings.openai_api_key:
            return "openai"
        return None

    # --- completion ---

    def complete(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        provider = self.provider()
        api_key = self._api_key(provider)
        if not api_key:
            env_name = "OPENAI_API_KEY" if provider == "openai" else "ANTHROPIC_API_KEY"
            raise ProviderNotConfiguredError(f"{env_name} is not configured")

        llm = self.settings.llm
        model = llm.openai_model if provider == "openai" else llm.claude_model
        params = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens or llm.max_tokens,
            "api_key": api_key,
        }
        if llm.timeout:
            params["timeout"] = llm.timeout

        try:
            resp = self.completion_fn(**params)
            content = resp.choices[0].message.content
        except Exception as e:
            raise ProviderError(f"{provider} completion failed: {e}") from e

        return content or ""

    # --- typed helpers ---

    def summarize_paper(self, paper: ArxivPaper) -> PaperSummary:
        reply = self.complete(build_summarize_prompt(paper))
        return parse_json_reply(reply, PaperSummary)

    def interpret_search(self, query: str) -> SearchInterpretation:
        reply = self.complete(build_search_prompt(query))
        return parse_json_reply(reply, SearchInterpretation)

    def select_figure(self, paper: ArxivPaper, figures: List[PaperFigure]) -> FigureSelection:
        reply = self.complete(build_select_figure_prompt(paper, figures))
        return parse_json_reply(reply, FigureSelection)

    def deep_summarize(self, paper: ArxivPaper, figures: List[PaperFigure]) -> DeepSummary:
        reply = self.complete(
            build_deep_summary_prompt(paper, figures),
            max_tokens=self.settings.llm.deep_summary_max_tokens,
        )
        return parse_json_reply(reply, DeepSummary)
