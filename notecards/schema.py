"""
Startup-time database handling: bounded connection retry and an idempotent
migrate-on-boot bootstrap that is safe to run against a complete schema.
"""
import logging
import time
from dataclasses import dataclass, field

from sqlalchemy import insert, inspect, literal, select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.schema import CreateColumn

from notecards.config import Config
from notecards.errors import DatabaseUnavailable
from notecards.extensions import db
from notecards.models import Category, User

logger = logging.getLogger(__name__)


@dataclass
class BootstrapReport:
    tables_created: list = field(default_factory=list)
    columns_added: list = field(default_factory=list)
    categories_backfilled: int = 0

    @property
    def changed(self):
        return bool(self.tables_created or self.columns_added or self.categories_backfilled)


def connect_with_retry(engine, retries=10, delay=2.0, sleep=time.sleep):
    """Run ``SELECT 1`` until it succeeds; DatabaseUnavailable after ``retries`` attempts."""
    for attempt in range(1, retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database reachable (attempt %s/%s)", attempt, retries)
            return engine
        except OperationalError as exc:
            logger.warning("Database not reachable (attempt %s/%s): %s", attempt, retries, exc.orig)
            if attempt == retries:
                raise DatabaseUnavailable() from exc
            sleep(delay)


def _add_missing_columns(conn, report):
    inspector = inspect(conn)
    for table in db.metadata.sorted_tables:
        if table.name in report.tables_created:
            continue
        present = {col["name"] for col in inspector.get_columns(table.name)}
        for column in table.columns:
            if column.name in present:
                continue
            if not column.nullable and column.server_default is None:
                logger.warning(
                    "Cannot add NOT NULL column %s.%s to an existing table, skipping",
                    table.name, column.name,
                )
                continue
            ddl = CreateColumn(column).compile(dialect=conn.dialect)
            conn.execute(text(f"ALTER TABLE {table.name} ADD COLUMN {ddl}"))
            report.columns_added.append(f"{table.name}.{column.name}")
            logger.info("Added column %s.%s", table.name, column.name)


def _backfill_default_category(conn, name):
    has_default = (
        select(Category.id)
        .where(Category.user_id == User.id, Category.name == name)
        .correlate(User)
        .exists()
    )
    stmt = insert(Category).from_select(
        ["user_id", "name"],
        select(User.id, literal(name)).where(~has_default),
    )
    return conn.execute(stmt).rowcount


def ensure_schema(engine, default_category_name=Config.DEFAULT_CATEGORY_NAME):
    """Create missing tables and columns, then give every user a default category."""
    report = BootstrapReport()
    with engine.begin() as conn:
        existing = set(inspect(conn).get_table_names())
        report.tables_created = [
            table.name for table in db.metadata.sorted_tables if table.name not in existing
        ]
        db.metadata.create_all(conn)
        for name in report.tables_created:
            logger.info("Created table %s", name)

        _add_missing_columns(conn, report)

        report.categories_backfilled = _backfill_default_category(conn, default_category_name)
        if report.categories_backfilled:
            logger.info("Backfilled %s default categories", report.categories_backfilled)

    if not report.changed:
        logger.info("Schema up to date")
    return report


def bootstrap(app):
    """Connect (with retry) and bootstrap the schema for ``app``'s database."""
    with app.app_context():
        connect_with_retry(
            db.engine,
            retries=app.config["DB_CONNECT_RETRIES"],
            delay=app.config["DB_CONNECT_DELAY"],
        )
        return ensure_schema(db.engine, app.config["DEFAULT_CATEGORY_NAME"])
