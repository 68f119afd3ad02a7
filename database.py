import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    event,
    create_engine,
    Column,
    String,
    Float,
    DateTime,
    ForeignKey,
    Boolean,
)
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from config import get_settings

CATEGORIES = ("Food", "Travel", "Office Supplies", "Other")
DEFAULT_CATEGORY = "Other"


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    # in-memory databases only live as long as their single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


DATABASE_URL = get_settings().database_url
engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _unicode_lower(dbapi_connection, connection_record):
        # built-in lower() only folds ASCII; match Python's str.lower()
        dbapi_connection.create_function(
            "lower", 1, lambda s: s.lower() if isinstance(s, str) else s, deterministic=True
        )


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_new_id)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class Expense(Base):
    __tablename__ = "expenses"
    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    description = Column(String(200), nullable=False)
    category = Column(String(32), nullable=False, default=DEFAULT_CATEGORY)
    is_reimbursable = Column(Boolean, nullable=False, default=False)
    base_amount = Column(Float, nullable=False)
    tax_amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=_utcnow, index=True, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    @property
    def total_amount(self) -> float:
        return self.base_amount + self.tax_amount


def init_db():
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
