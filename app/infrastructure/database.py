from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings


def build_engine(database_url: str):
    """Create a synchronous engine; SQLite gets thread-sharing and FK enforcement"""
    if "sqlite" in database_url.lower():
        sqlite_engine = create_engine(
            database_url,
            pool_pre_ping=True,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False}
        )

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        database_url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.DEBUG
    )


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False
)

# Base model
Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database tables"""
    # Register every mapped table on Base.metadata
    import app.domain.doctors.models  # noqa: F401
    import app.domain.scheduling.models  # noqa: F401
    import app.domain.patients.models  # noqa: F401
    import app.domain.appointments.models  # noqa: F401
    import app.domain.billing.models  # noqa: F401
    import app.domain.emr.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def close_db():
    """Close database connections"""
    engine.dispose()
