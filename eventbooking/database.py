import functools
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from . import config
from .errors import ConfigurationError, StorageError

logger = logging.getLogger(__name__)

Base = declarative_base()

# Driver errors worth retrying on reads: dropped connections, pool exhaustion, timeouts
RETRYABLE_ERRORS = (OperationalError, PoolTimeoutError)


class Database:
    """
    Explicitly owned handle to the relational store.

    The process entry point constructs it, calls ``init()`` and ``create_schema()``
    on startup and ``dispose()`` on shutdown. Nothing is created on import.
    """

    def __init__(
        self,
        url: Optional[str],
        *,
        pool_size: int = config.DB_POOL_SIZE,
        max_overflow: int = config.DB_MAX_OVERFLOW,
        pool_timeout: int = config.DB_POOL_TIMEOUT,
        pool_recycle: int = config.DB_POOL_RECYCLE,
        statement_timeout_ms: int = config.DB_STATEMENT_TIMEOUT_MS,
        log_slow_queries: bool = config.DB_LOG_SLOW_QUERIES,
        slow_query_threshold: float = config.DB_SLOW_QUERY_THRESHOLD,
    ):
        self.url = url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.statement_timeout_ms = statement_timeout_ms
        self.log_slow_queries = log_slow_queries
        self.slow_query_threshold = slow_query_threshold
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self.session_factory is not None

    def init(self) -> None:
        if not self.url:
            raise ConfigurationError("DATABASE_URL is not configured")
        if self.engine is not None:
            return

        try:
            if self.url.startswith("sqlite"):
                # In-memory SQLite must share one connection across threads
                self.engine = create_engine(
                    self.url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )

                @event.listens_for(self.engine, "connect")
                def enable_foreign_keys(dbapi_connection, _record):
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()

            else:
                self.engine = create_engine(
                    self.url,
                    pool_pre_ping=True,  # Test connections before using
                    pool_recycle=self.pool_recycle,
                    pool_size=self.pool_size,
                    max_overflow=self.max_overflow,
                    pool_timeout=self.pool_timeout,
                    connect_args={"options": f"-c statement_timeout={self.statement_timeout_ms}"},
                    echo=False,
                )
        except Exception as e:
            logger.error(f"❌ Failed to create database engine: {e}")
            raise ConfigurationError("DATABASE_URL is invalid") from e

        if self.log_slow_queries:
            self._attach_slow_query_logging(self.engine)

        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info("✅ Database engine created successfully")

    def _attach_slow_query_logging(self, engine: Engine) -> None:
        threshold = self.slow_query_threshold

        @event.listens_for(engine, "before_cursor_execute")
        def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            conn.info.setdefault("query_start_time", []).append(time.time())

        @event.listens_for(engine, "after_cursor_execute")
        def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            total = time.time() - conn.info["query_start_time"].pop(-1)
            if total > threshold:
                logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    def create_schema(self) -> None:
        """Create missing tables and check the schema version contract."""
        from .models import SCHEMA_VERSION, SchemaInfo

        if self.engine is None:
            raise ConfigurationError("Database is not initialized")

        Base.metadata.create_all(bind=self.engine, checkfirst=True)

        with self.session() as db:
            info = db.query(SchemaInfo).order_by(SchemaInfo.version.desc()).first()
            if info is None:
                db.add(SchemaInfo(version=SCHEMA_VERSION))
                db.commit()
                logger.info(f"📋 Stamped new database with schema version {SCHEMA_VERSION}")
            elif info.version < SCHEMA_VERSION:
                raise ConfigurationError(
                    f"Database schema version {info.version} is older than required "
                    f"version {SCHEMA_VERSION}. Run migrations before starting the API."
                )

    def session(self) -> Session:
        if self.session_factory is None:
            raise ConfigurationError("Database is not configured")
        return self.session_factory()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.session_factory = None


def get_db(request: Request) -> Iterator[Session]:
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None or not database.is_initialized:
        raise ConfigurationError("Database is not configured")
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def is_constraint_violation(error: Exception) -> bool:
    """True for a StorageError raised by a unique or foreign key violation"""
    return isinstance(error, StorageError) and isinstance(error.__cause__, IntegrityError)


def _entity_id(args: tuple) -> Optional[Any]:
    if args and isinstance(args[0], (str, int)):
        return args[0]
    return None


def read_operation(operation: str) -> Callable:
    """
    Wrap a repository read. Transient driver errors are retried with bounded
    exponential backoff; everything else becomes a non-retryable StorageError.
    The wrapped function takes the session as its first argument.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(db: Session, *args, **kwargs):
            attempt = 0
            while True:
                try:
                    return func(db, *args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    db.rollback()
                    attempt += 1
                    if attempt >= config.DB_READ_RETRY_ATTEMPTS:
                        logger.error(f"❌ {operation} failed after {attempt} attempts: {e}")
                        raise StorageError(operation, _entity_id(args), retryable=True) from e
                    delay = config.DB_READ_RETRY_BACKOFF * (2 ** (attempt - 1))
                    logger.warning(f"⚠️ {operation} failed (attempt {attempt}), retrying in {delay:.2f}s")
                    time.sleep(delay)
                except SQLAlchemyError as e:
                    db.rollback()
                    logger.error(f"❌ {operation} failed: {e}")
                    raise StorageError(operation, _entity_id(args)) from e

        return wrapper

    return decorator


def write_operation(operation: str, idempotent: bool = False) -> Callable:
    """
    Wrap a repository write. Writes are never retried here; the error is only
    flagged retryable for the caller when the write is idempotent.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return func(db, *args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"❌ {operation} failed: {e}")
                raise StorageError(
                    operation, _entity_id(args), retryable=idempotent and isinstance(e, RETRYABLE_ERRORS)
                ) from e

        return wrapper

    return decorator


@contextmanager
def transaction(
    db: Session, operation: str, entity_id: Optional[Any] = None, idempotent: bool = False
) -> Iterator[Session]:
    """Commit once when the block succeeds, roll back everything otherwise."""
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ {operation} rolled back: {e}")
        raise StorageError(
            operation, entity_id, retryable=idempotent and isinstance(e, RETRYABLE_ERRORS)
        ) from e
    except Exception:
        db.rollback()
        raise
