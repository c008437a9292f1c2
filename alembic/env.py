import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from app.core.config import settings
from app.db.session import Base

# Import all models so Alembic sees them in metadata
from app.models.catalog_item import CatalogItem  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.payment import BookingPayment  # noqa: F401
from app.models.note import BookingNote, RefundNote  # noqa: F401
from app.models.refund_request import RefundRequest  # noqa: F401
from app.models.promotion import Promotion  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401


# Alembic Config object
config = context.config

# Force sqlalchemy.url from real runtime DATABASE_URL
db_url = getattr(settings, "DATABASE_URL", None) or os.getenv("DATABASE_URL")
if not db_url:
    raise RuntimeError("DATABASE_URL is not set (check .env / app.core.config.settings)")

config.set_main_option("sqlalchemy.url", db_url)

# Logging config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    url = config.get_main_option("sqlalchemy.url")

    # DATABASE_URL from settings, not alembic.ini, so the app and migrations agree
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # Do not run any DDL before configure(); otherwise the connection is already in a
        # transaction and Alembic's begin_transaction() returns nullcontext() and never commits.
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
