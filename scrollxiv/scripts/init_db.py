"""
Initialize database schema.

Run ONCE when:
- first local setup
- new environment deployment
"""

from scrollxiv.config import get_settings
from scrollxiv.database.db.models import Base
from scrollxiv.database.db.session import create_db_engine


def main():
    settings = get_settings()
    print(f"🔧 Initializing database schema at {settings.database_url} ...")
    engine = create_db_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    print("✅ Database schema initialized.")


if __name__ == "__main__":
    main()
