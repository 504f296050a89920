from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import get_settings

Base = declarative_base()


def create_db_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # SQLite connections are shared across the threadpool FastAPI runs sync routes on
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


engine = create_db_engine(get_settings().database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind) -> None:
    """Create all tables and make sure the fixed clothing categories exist."""
    import models

    Base.metadata.create_all(bind=bind)
    db = sessionmaker(bind=bind)()
    try:
        existing = {name for (name,) in db.query(models.Category.name).all()}
        for name in models.DEFAULT_CATEGORIES:
            if name not in existing:
                db.add(models.Category(name=name))
        db.commit()
    finally:
        db.close()
