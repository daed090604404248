# ecolens/db/session.py
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from ecolens.errors import Unavailable

logger = logging.getLogger(__name__)


class Database:
    """
    Handle on the record store.

    Built by the application factory and connected/disconnected from its
    lifespan; request handlers reach it through ``app.state.db``.
    """

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout
        self.engine = None
        self.SessionLocal = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def engine_options(self) -> dict:
        # sqlite requires special handling, and bounds waits with its busy timeout
        if self.url.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False, "timeout": self.timeout}}
        # server drivers (psycopg2, pymysql) take whole seconds
        return {
            "pool_timeout": self.timeout,
            "connect_args": {"connect_timeout": max(1, int(self.timeout))},
        }

    def connect(self):
        if self.is_connected:
            return

        self.engine = create_engine(self.url, pool_pre_ping=True, **self.engine_options())
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.init_db()
        logger.info("Database connected: %s", self.engine.url.render_as_string(hide_password=True))

    def disconnect(self):
        if not self.is_connected:
            return
        self.engine.dispose()
        self.engine = None
        self.SessionLocal = None
        logger.info("Database disconnected")

    def init_db(self):
        """Create tables if they don't exist."""
        from .models import Base
        Base.metadata.create_all(bind=self.engine)

    def session(self):
        if not self.is_connected:
            raise Unavailable()
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        if not self.is_connected:
            return False
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
