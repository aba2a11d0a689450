"""
Alembic Environment for BookNest

The database URL always comes from booknest settings (DATABASE_URL), never
from alembic.ini, so migrations and the API point at the same store.

Every model is imported so that Base.metadata knows all seven tables
(users, books, votes, comments, comment_likes, reviews, review_helpful)
when running `alembic revision --autogenerate`.

Typical use:
    alembic upgrade head                 # apply the schema
    alembic downgrade base               # drop everything
    alembic upgrade head --sql           # print the DDL instead (offline)
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from booknest.config import get_settings
from booknest.database import Base
from booknest.models import (  # noqa: F401 - registers tables on Base.metadata
    Book,
    Comment,
    CommentLike,
    Review,
    ReviewHelpful,
    User,
    Vote,
)

settings = get_settings()

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite cannot ALTER constraints in place
render_as_batch = settings.database_url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit the migration SQL without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=render_as_batch,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a short-lived, unpooled connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
