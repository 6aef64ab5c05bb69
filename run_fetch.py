#!/usr/bin/env python3
"""
Manual arXiv ingest: fetch the newest papers for some categories and upsert them.

Usage:
    python run_fetch.py
    python run_fetch.py --categories cs.AI,cs.RO --max-results 50
    python run_fetch.py --search "diffusion models for robotics"
"""

import argparse
import logging

from tqdm import tqdm

from scrollxiv.config import get_settings, setup_logging
from scrollxiv.crawler.arxiv_client import ArxivClient
from scrollxiv.database.db.models import Base
from scrollxiv.database.db.session import create_db_engine, create_session_factory
from scrollxiv.database.paper_repository import PaperRepository


def main():
    parser = argparse.ArgumentParser(description="ScrollXiv arXiv fetch")
    parser.add_argument("--categories", default=None, help="Comma-separated arXiv categories")
    parser.add_argument("--max-results", type=int, default=None)
    parser.add_argument("--search", default=None, help="Free-text query instead of the category listing")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level, log_file="fetch.log", log_dir=settings.log_dir)
    logger = logging.getLogger("run_fetch")

    engine = create_db_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    repo = PaperRepository(create_session_factory(engine))
    crawler = ArxivClient(settings.arxiv)

    categories = (
        [c.strip() for c in args.categories.split(",") if c.strip()]
        if args.categories
        else settings.feed.categories
    )
    max_results = args.max_results or settings.feed.fetch_size

    logger.info("🔎 Fetching papers from arXiv...")
    if args.search:
        papers, total = crawler.search_papers(args.search, categories if args.categories else None, max_results)
    else:
        papers, total = crawler.fetch_papers(categories, max_results=max_results)

    before = repo.count()
    for paper in tqdm(papers, desc="Upserting papers"):
        repo.upsert_paper(paper)
    added = repo.count() - before

    logger.info(f"📚 fetched={len(papers)} total={total} new={added}")


if __name__ == "__main__":
    main()
