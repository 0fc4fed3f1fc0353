from vocab_review.config import get_settings
from vocab_review.db.session import create_db_engine, init_db

if __name__ == "__main__":
    settings = get_settings()
    print(f"Creating review card tables in {settings.DATABASE_URL}...")
    init_db(create_db_engine(settings.DATABASE_URL))
    print("Tables created.")
