from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from mysql.connector import pooling

from ..core.constants import DEFAULT_POOL_QUEUE_LIMIT, DEFAULT_POOL_SIZE, DEFAULT_POOL_TIMEOUT_SECONDS
from ..core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

# mysql-connector refuses pools larger than this
MAX_POOL_SIZE = 32


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = DEFAULT_POOL_SIZE
    pool_timeout: float = DEFAULT_POOL_TIMEOUT_SECONDS
    queue_limit: int = DEFAULT_POOL_QUEUE_LIMIT

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
            pool_size=int(db_config.get("pool_size", DEFAULT_POOL_SIZE)),
            pool_timeout=float(db_config.get("pool_timeout", DEFAULT_POOL_TIMEOUT_SECONDS)),
            queue_limit=int(db_config.get("queue_limit", DEFAULT_POOL_QUEUE_LIMIT)),
        )


class DatabaseConnection:
    """Singleton-like factory handing out pooled MySQL connections.

    mysql-connector's own pool fails immediately when exhausted, so callers
    first take one of `pool_size` slots. At most `queue_limit` callers may wait
    for a slot, each for at most `pool_timeout` seconds; beyond that the request
    is rejected with ServiceUnavailableError instead of queueing forever.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool_size = max(1, min(int(config.pool_size), MAX_POOL_SIZE))
        self._slots = threading.BoundedSemaphore(self._pool_size)
        self._waiting = 0
        self._lock = threading.Lock()
        self._pool: Optional[pooling.MySQLConnectionPool] = None

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._lock:
            if self._pool is None:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name="school_attendance",
                    pool_size=self._pool_size,
                    pool_reset_session=True,
                    host=self._config.host,
                    port=int(self._config.port),
                    user=self._config.user,
                    password=self._config.password,
                    database=self._config.database,
                )
            return self._pool

    def _acquire_slot(self) -> None:
        if self._slots.acquire(blocking=False):
            return

        with self._lock:
            if self._waiting >= self._config.queue_limit:
                logger.warning("DB pool queue full (%s waiting), rejecting request", self._waiting)
                raise ServiceUnavailableError("Servicio no disponible: demasiadas solicitudes en espera.")
            self._waiting += 1
        try:
            acquired = self._slots.acquire(timeout=self._config.pool_timeout)
        finally:
            with self._lock:
                self._waiting -= 1

        if not acquired:
            logger.warning("Timed out after %.1fs waiting for a DB connection", self._config.pool_timeout)
            raise ServiceUnavailableError("Servicio no disponible: tiempo de espera agotado.")

    def connect(self):
        self._acquire_slot()
        try:
            return self._get_pool().get_connection()
        except Exception:
            self._slots.release()
            raise

    def release(self, conn) -> None:
        try:
            conn.close()
        finally:
            self._slots.release()
