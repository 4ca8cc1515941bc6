# streetmart/database.py
"""
Store handle.

The engine is owned by a `Database` instance that the app opens on startup
and closes on shutdown. Request handlers get a session through the
`get_session` dependency; services take that session as their first argument.
"""

import logging
import math
from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from . import models  # noqa: F401  (registers tables on SQLModel.metadata)

logger = logging.getLogger(__name__)


def engine_options(url: str, timeout: float) -> Dict[str, Any]:
    """
    Keyword arguments for `create_engine` that bound every wait on the store
    by `timeout` seconds.

    sqlite: the driver busy timeout bounds lock waits.
    postgresql: `lock_timeout` and `statement_timeout` are set per connection.
    mysql: `innodb_lock_wait_timeout` is set per connection.
    Any dialect: `pool_timeout` bounds the wait for a pooled connection.
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}

    options: Dict[str, Any] = {"pool_timeout": timeout, "pool_pre_ping": True}
    millis = max(1, int(timeout * 1000))
    if url.startswith("postgresql"):
        options["connect_args"] = {
            "options": f"-c lock_timeout={millis} -c statement_timeout={millis}"
        }
    elif url.startswith("mysql"):
        options["connect_args"] = {
            "init_command": f"SET SESSION innodb_lock_wait_timeout={max(1, math.ceil(timeout))}"
        }
    return options


class Database:
    def __init__(self, url: str, timeout: float = 5.0) -> None:
        self.url = url
        self.timeout = timeout
        self.engine: Optional[Engine] = None

    def open(self) -> None:
        if self.engine is not None:
            return
        self.engine = create_engine(self.url, **engine_options(self.url, self.timeout))
        SQLModel.metadata.create_all(self.engine)
        logger.info("Opened store at %s", self.url)

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        logger.info("Closed store at %s", self.url)

    def session(self) -> Session:
        if self.engine is None:
            raise RuntimeError("Database is not open")
        return Session(self.engine)


def get_session(request: Request) -> Iterator[Session]:
    db: Database = request.app.state.db
    with db.session() as session:
        yield session
