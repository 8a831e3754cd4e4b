from sqlmodel import SQLModel, create_engine, Session
from estore.config import settings


def build_engine(url: str):
    if url.startswith("sqlite"):
        # sessions are handed across threads by the request workers
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800,       # refresh every 30 min
        pool_timeout=10,
        connect_args={"connect_timeout": settings.db_connect_timeout},
    )


engine = build_engine(settings.database_url)


def create_db_and_tables(bind=None):
    from estore.models import user, product, order, order_line, download
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
