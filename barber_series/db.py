# barber_series/db.py

from sqlmodel import SQLModel, create_engine, Session

from barber_series.config import get_settings

DATABASE_URL = get_settings().database_url

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # required for SQLite + FastAPI

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=False,          # set to True to see SQL
    pool_pre_ping=True,
    connect_args=connect_args,
)


def create_db_and_tables(bind=engine):
    from barber_series import models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(bind)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
