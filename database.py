import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from core.errors import BookingError, StoreFailure

logger = logging.getLogger(__name__)

Base = declarative_base()


# ---------------- Database ----------------
class Database:
    """Engine plus session factory, created at startup and disposed at shutdown."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False, "timeout": 30}
        self.engine = create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)
        if url.startswith("sqlite"):
            _use_immediate_transactions(self.engine)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_all(self) -> None:
        # models register themselves on Base when imported
        import model.appointment_model  # noqa: F401
        import model.doctor_model  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def transaction(self):
        """One unit of work: commit on success, rollback on any error.

        SQLAlchemy errors surface as StoreFailure.
        """
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except BookingError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Store operation failed: %s", e)
            raise StoreFailure(f"Store operation failed: {e.__class__.__name__}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _use_immediate_transactions(engine) -> None:
    """Make pysqlite take the write lock at BEGIN so concurrent writers queue up."""

    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


