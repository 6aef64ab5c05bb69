from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.orm import Session, sessionmaker

from scrollxiv.database.db.models import PaperRow, SeenMarkRow, new_id, utcnow
from scrollxiv.errors import InvalidRequestError, PaperNotFoundError
from scrollxiv.model.paper import (
    ArxivPaper,
    DeepSummary,
    Paper,
    PaperFigure,
    PaperSummary,
    SelectedFigure,
)


BIBLIOGRAPHIC_FIELDS = (
    "title",
    "authors",
    "abstract",
    "categories",
    "published_date",
    "pdf_url",
)


def row_to_paper(row: PaperRow) -> Paper:
    data = {column.name: getattr(row, column.name) for column in PaperRow.__table__.columns}
    return Paper.model_validate(data)


class PaperRepository:
    """
    Relational store for papers.

    Every method opens its own session and commits at most once, so a write
    either lands completely or not at all. Read-then-write sequences across
    methods are not locked; concurrent enrichment of one paper is last-write-wins.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    # =====================================================
    # Upsert (crawl / ingest)
    # =====================================================

    def upsert_paper(self, paper: ArxivPaper) -> Paper:
        return self.upsert_papers([paper])[0]

    def upsert_papers(self, papers: Sequence[ArxivPaper]) -> List[Paper]:
        """
        Insert new papers and refresh bibliographic fields of known ones.

        The arXiv id is the natural key; internal ids never change and
        enrichment columns are left untouched.
        """
        if not papers:
            return []

        arxiv_ids = list(dict.fromkeys(p.arxiv_id for p in papers))

        with self.session_factory() as db:
            rows: Dict[str, PaperRow] = {
                row.arxiv_id: row
                for row in db.execute(
                    select(PaperRow).where(PaperRow.arxiv_id.in_(arxiv_ids))
                ).scalars()
            }

            now = utcnow()
            for p in papers:
                row = rows.get(p.arxiv_id)
                if row is None:
                    row = PaperRow(id=new_id(), arxiv_id=p.arxiv_id, created_at=now)
                    db.add(row)
                    rows[p.arxiv_id] = row
                for field in BIBLIOGRAPHIC_FIELDS:
                    setattr(row, field, getattr(p, field))
                row.updated_at = now

            db.commit()
            return [row_to_paper(rows[p.arxiv_id]) for p in papers]

    # =====================================================
    # Lookup
    # =====================================================

    def get_paper_by_id(self, paper_id: str) -> Optional[Paper]:
        with self.session_factory() as db:
            row = db.get(PaperRow, paper_id)
            return row_to_paper(row) if row else None

    def get_paper_by_arxiv_id(self, arxiv_id: str) -> Optional[Paper]:
        with self.session_factory() as db:
            row = db.execute(
                select(PaperRow).where(PaperRow.arxiv_id == arxiv_id)
            ).scalar_one_or_none()
            return row_to_paper(row) if row else None

    def count(self) -> int:
        with self.session_factory() as db:
            return db.query(PaperRow).count()

    # =====================================================
    # Partial update (enrichment)
    # =====================================================

    def _update(self, paper_id: str, **values) -> Paper:
        with self.session_factory() as db:
            row: Optional[PaperRow] = db.get(PaperRow, paper_id)
            if not row:
                raise PaperNotFoundError(paper_id)

            for field, value in values.items():
                setattr(row, field, value)
            row.updated_at = utcnow()

            db.commit()
            return row_to_paper(row)

    def update_summary(self, paper_id: str, summary: PaperSummary) -> Paper:
        return self._update(
            paper_id,
            hook=summary.hook,
            key_concepts=summary.key_concepts,
            summary=summary.summary,
            why_matters=summary.why_matters,
        )

    def update_deep_summary(self, paper_id: str, deep_summary: DeepSummary) -> Paper:
        return self._update(paper_id, deep_summary=deep_summary)

    def update_figures(
        self,
        paper_id: str,
        figures: List[PaperFigure],
        selected_figure: Optional[SelectedFigure],
        error: Optional[str] = None,
    ) -> Paper:
        return self._update(
            paper_id,
            figures=figures,
            selected_figure=selected_figure,
            figures_error=error or None,
        )

    # =====================================================
    # Feed pagination
    # =====================================================

    def _feed_query(self, db: Session, exclude_seen: bool):
        query = db.query(PaperRow)
        if exclude_seen:
            # Applied before LIMIT so pages stay full.
            query = query.filter(
                ~exists().where(SeenMarkRow.paper_id == PaperRow.id)
            )
        return query

    def list_feed(
        self,
        cursor: Optional[str] = None,
        limit: int = 10,
        exclude_seen: bool = True,
    ) -> Tuple[List[Paper], Optional[str]]:
        """
        One page ordered by published_date DESC (id DESC as tie-breaker).

        cursor is the id of the last paper of the previous page; the page
        starts strictly after it. Returns (papers, next_cursor) where
        next_cursor is None on the last page.
        """
        if limit < 1:
            raise InvalidRequestError("limit must be positive")

        with self.session_factory() as db:
            query = self._feed_query(db, exclude_seen)

            if cursor:
                anchor: Optional[PaperRow] = db.get(PaperRow, cursor)
                if anchor is None:
                    raise InvalidRequestError(f"Unknown cursor: {cursor}")
                query = query.filter(
                    or_(
                        PaperRow.published_date < anchor.published_date,
                        and_(
                            PaperRow.published_date == anchor.published_date,
                            PaperRow.id < anchor.id,
                        ),
                    )
                )

            rows = (
                query
                .order_by(PaperRow.published_date.desc(), PaperRow.id.desc())
                .limit(limit + 1)
                .all()
            )

            has_more = len(rows) > limit
            rows = rows[:limit]
            next_cursor = rows[-1].id if has_more else None

            return [row_to_paper(r) for r in rows], next_cursor
