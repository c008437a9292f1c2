"""Block until the Postgres behind DATABASE_URL accepts connections (container start-up)."""
import logging
import os
import time
from urllib.parse import urlparse

import psycopg2

logger = logging.getLogger("wait_for_db")


def wait(database_url: str, timeout_s: int) -> None:
    # SQLAlchemy URL may carry a driver suffix
    url = database_url.replace("postgresql+psycopg2://", "postgresql://")
    if not url.startswith(("postgresql://", "postgres://")):
        logger.info("Not a Postgres URL; nothing to wait for")
        return
    p = urlparse(url)
    params = dict(
        host=p.hostname or "db",
        port=p.port or 5432,
        user=p.username or "rentals",
        password=p.password or "rentals",
        dbname=(p.path or "/rentals").lstrip("/") or "rentals",
    )
    logger.info("Waiting for Postgres at %s:%s db=%s (timeout=%ss)", params["host"], params["port"], params["dbname"], timeout_s)
    start = time.time()
    while True:
        try:
            psycopg2.connect(**params).close()
            logger.info("Postgres is ready")
            return
        except psycopg2.OperationalError:
            if time.time() - start > timeout_s:
                logger.error("Timed out waiting for Postgres")
                raise
            time.sleep(1)


database_url = os.getenv("DATABASE_URL")
if not database_url:
    raise SystemExit("DATABASE_URL is not set")
logging.basicConfig(level=logging.INFO, format="[wait_for_db] %(message)s")
wait(database_url, int(os.getenv("DB_WAIT_TIMEOUT", "60")))
