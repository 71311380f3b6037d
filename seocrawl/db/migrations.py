"""Create the crawl schema and add columns missing from older databases."""
import logging
from typing import List

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.schema import Column

from seocrawl.db.models import Base

logger = logging.getLogger(__name__)


def _column_ddl(column: Column, engine: Engine) -> str:
    ddl = f"{column.name} {column.type.compile(dialect=engine.dialect)}"
    default = column.server_default
    if default is not None:
        arg = getattr(default, "arg", None)
        if isinstance(arg, str):
            ddl += " DEFAULT '" + arg.replace("'", "''") + "'"
        elif arg is not None and hasattr(arg, "text"):
            ddl += f" DEFAULT {arg.text}"
    return ddl


def add_missing_columns(engine: Engine) -> List[str]:
    """Issue ALTER TABLE ... ADD COLUMN for every model column absent from the live table.

    Returns the added columns as "table.column". A "duplicate column name"
    error (another process got there first) is ignored; anything else
    propagates.
    """
    added: List[str] = []
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    for table in Base.metadata.sorted_tables:
        if table.name not in existing_tables:
            continue
        live = {c["name"] for c in inspector.get_columns(table.name)}
        for column in table.columns:
            if column.name in live:
                continue
            stmt = f"ALTER TABLE {table.name} ADD COLUMN {_column_ddl(column, engine)}"
            try:
                with engine.begin() as conn:
                    conn.execute(text(stmt))
            except OperationalError as e:
                if "duplicate column name" in str(e).lower():
                    logger.debug("Column %s.%s already present", table.name, column.name)
                    continue
                raise
            logger.info("Added column %s.%s", table.name, column.name)
            added.append(f"{table.name}.{column.name}")
    return added


def migrate(engine: Engine) -> List[str]:
    """Create missing tables and indexes, then add missing columns."""
    added = add_missing_columns(engine)
    Base.metadata.create_all(engine)
    return added
