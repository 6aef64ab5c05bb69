from __future__ import annotations

import logging
import re
from typing import List, Optional

import requests
from pydantic import BaseModel, Field

from ..config import ArxivConfig
from ..model.paper import PaperFigure

logger = logging.getLogger(__name__)

NOT_AVAILABLE_ERROR = "ar5iv rendering not available"

# ar5iv renders figures as <figure class="ltx_figure ..."> with an <img> inside
FIGURE_RE = re.compile(
    r'<figure[^>]*class="[^"]*ltx_figure[^"]*"[^>]*>([\s\S]*?)</figure>',
    re.IGNORECASE,
)
IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
SRC_RE = re.compile(r'\bsrc="([^"]+)"', re.IGNORECASE)
ALT_RE = re.compile(r'\balt="([^"]*)"', re.IGNORECASE)
CAPTION_RE = re.compile(r"<figcaption[^>]*>([\s\S]*?)</figcaption>", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
VERSION_RE = re.compile(r"v\d+$")


class FigureExtractionResult(BaseModel):
    figures: List[PaperFigure] = Field(default_factory=list)
    error: Optional[str] = None


def strip_version(arxiv_id: str) -> str:
    """2401.12345v1 -> 2401.12345"""
    return VERSION_RE.sub("", arxiv_id)


def strip_html(html: str) -> str:
    return re.sub(r"\s+", " ", TAG_RE.sub(" ", html)).strip()


class Ar5ivClient:
    """
    Scrape figures from the ar5iv HTML rendering of a paper.

    extract_figures never raises: every failure comes back in the error field
    so callers can persist "tried and failed" state.
    """

    def __init__(self, config: Optional[ArxivConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or ArxivConfig()
        self.session = session or requests.Session()

    def get_ar5iv_url(self, arxiv_id: str) -> str:
        return f"{self.config.ar5iv_base}/html/{strip_version(arxiv_id)}"

    def extract_figures(self, arxiv_id: str) -> FigureExtractionResult:
        clean_id = strip_version(arxiv_id)
        url = self.get_ar5iv_url(clean_id)

        try:
            response = self.session.get(
                url,
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout,
            )

            if not response.ok:
                if response.status_code == 404:
                    return FigureExtractionResult(error=NOT_AVAILABLE_ERROR)
                return FigureExtractionResult(error=f"ar5iv returned {response.status_code}")

            figures = self.parse_figures(response.text, clean_id)
        except Exception as e:
            logger.warning(f"⚠ ar5iv fetch failed for {clean_id}: {e}")
            return FigureExtractionResult(error=str(e) or "Failed to fetch ar5iv")

        logger.info(f"🖼 ar5iv {clean_id}: {len(figures)} figures")
        return FigureExtractionResult(figures=figures)

    def parse_figures(self, html: str, arxiv_id: str) -> List[PaperFigure]:
        """Figure blocks without an image are skipped and do not take an index."""
        figures: List[PaperFigure] = []
        index = 1

        for match in FIGURE_RE.finditer(html):
            figure_html = match.group(1)

            img_match = IMG_RE.search(figure_html)
            if not img_match:
                continue
            src_match = SRC_RE.search(img_match.group(0))
            if not src_match:
                continue

            alt_match = ALT_RE.search(img_match.group(0))
            caption_match = CAPTION_RE.search(figure_html)

            caption = strip_html(caption_match.group(1)) if caption_match else ""

            figures.append(PaperFigure(
                index=index,
                url=self._absolute_url(src_match.group(1), arxiv_id),
                caption=caption or f"Figure {index}",
                alt=alt_match.group(1) if alt_match and alt_match.group(1) else None,
            ))
            index += 1

        return figures

    def _absolute_url(self, src: str, arxiv_id: str) -> str:
        if src.startswith("/"):
            return f"{self.config.ar5iv_base}{src}"
        if not src.startswith("http"):
            return f"{self.config.ar5iv_base}/html/{arxiv_id}/{src}"
        return src
