from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session


def create_db_engine(dsn: str) -> Engine:
    """Движок БД коллекций. Создаётся один раз при старте."""
    return create_engine(dsn, echo=False, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
