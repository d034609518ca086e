# repairdesk/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(database_url: str):
    engine_kwargs = {"connect_args": {"check_same_thread": False}} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, pool_pre_ping=True, **engine_kwargs)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
