from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from scrollxiv.database.db.models import PaperRow, SavedMarkRow, SeenMarkRow
from scrollxiv.database.paper_repository import row_to_paper
from scrollxiv.errors import PaperNotFoundError
from scrollxiv.model.paper import Paper


class PaperMarkRepository:
    """
    Manage the user's per-paper marks: saved bookmarks and seen/discarded flags
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @staticmethod
    def _require_paper(db: Session, paper_id: str) -> None:
        if db.get(PaperRow, paper_id) is None:
            raise PaperNotFoundError(paper_id)

    @staticmethod
    def _seen_mark(db: Session, paper_id: str):
        return db.execute(
            select(SeenMarkRow).where(SeenMarkRow.paper_id == paper_id)
        ).scalar_one_or_none()

    # --- Saved ---

    def save(self, paper_id: str) -> None:
        with self.session_factory() as db:
            self._require_paper(db, paper_id)
            exists = db.execute(
                select(SavedMarkRow.id).where(SavedMarkRow.paper_id == paper_id)
            ).first()
            if exists:
                return
            db.add(SavedMarkRow(paper_id=paper_id))
            db.commit()

    def unsave(self, paper_id: str) -> None:
        with self.session_factory() as db:
            db.query(SavedMarkRow).filter(SavedMarkRow.paper_id == paper_id).delete()
            db.commit()

    def is_saved(self, paper_id: str) -> bool:
        with self.session_factory() as db:
            return db.execute(
                select(SavedMarkRow.id).where(SavedMarkRow.paper_id == paper_id)
            ).first() is not None

    def list_saved(self) -> List[Paper]:
        with self.session_factory() as db:
            rows = (
                db.query(PaperRow)
                .join(SavedMarkRow, SavedMarkRow.paper_id == PaperRow.id)
                .order_by(SavedMarkRow.created_at.desc())
                .all()
            )
            return [row_to_paper(r) for r in rows]

    # --- Seen / discarded ---

    def mark_seen(self, paper_id: str) -> None:
        """Record that a paper was shown. Never downgrades a discard."""
        with self.session_factory() as db:
            self._require_paper(db, paper_id)
            if self._seen_mark(db, paper_id) is None:
                db.add(SeenMarkRow(paper_id=paper_id, discarded=False))
                db.commit()

    def discard(self, paper_id: str) -> None:
        with self.session_factory() as db:
            self._require_paper(db, paper_id)
            mark = self._seen_mark(db, paper_id)
            if mark is None:
                db.add(SeenMarkRow(paper_id=paper_id, discarded=True))
            else:
                mark.discarded = True
            db.commit()

    def undiscard(self, paper_id: str) -> None:
        """Drop the mark entirely so the paper can show up in the feed again."""
        with self.session_factory() as db:
            db.query(SeenMarkRow).filter(SeenMarkRow.paper_id == paper_id).delete()
            db.commit()

    def is_discarded(self, paper_id: str) -> bool:
        with self.session_factory() as db:
            mark = self._seen_mark(db, paper_id)
            return bool(mark and mark.discarded)

    def is_seen(self, paper_id: str) -> bool:
        with self.session_factory() as db:
            return self._seen_mark(db, paper_id) is not None
