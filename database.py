import sqlite3

from sqlalchemy import create_engine, Column, String, DateTime, Index
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from config import Config
from utils import gen_id

Base = declarative_base()

# --- SQLite Connection Optimizations ---
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL") # Write-Ahead Logging for better concurrency
    cursor.close()

# --- Job Model ---

class Job(Base):
    __tablename__ = 'jobs'

    id = Column(String, primary_key=True, default=gen_id)

    job_class = Column(String, nullable=False)
    queue_name = Column(String, nullable=False, default="default")
    cron_key = Column(String, nullable=True)

    # Lifecycle timestamps; the job state is derived from these, never stored
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    performed_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    error = Column(String, nullable=True)
    retried_job_id = Column(String, nullable=True)

    __table_args__ = (
        Index("ix_jobs_created_at", "created_at"),
        Index("ix_jobs_queue_name_created_at", "queue_name", "created_at"),
        Index("ix_jobs_cron_key_created_at", "cron_key", "created_at"),
    )

    def __repr__(self):
        return f"<Job(id='{self.id[:8]}', job_class='{self.job_class}', queue='{self.queue_name}')>"

# --- Utility Functions ---

def make_engine(url=None, timeout=None):
    cfg = None
    if url is None or timeout is None:
        cfg = Config()
    url = url or cfg.get("database_url")
    timeout = timeout if timeout is not None else cfg.get("db_timeout")
    if not url.startswith("sqlite"):
        return create_engine(url)
    connect_args = {"check_same_thread": False, "timeout": timeout}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)

def make_session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)

def initialize_db(engine):
    """Create the database and tables if they don't exist."""
    Base.metadata.create_all(bind=engine)
