from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base

from points_ledger import config


def create_db_engine(database_url: str):
    url = make_url(database_url)

    connect_args = {}
    if url.get_backend_name() == "postgresql":
        connect_args = {"options": "-c timezone=utc"}
    elif url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False}

    return create_engine(url, connect_args=connect_args)


engine = create_db_engine(config.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
