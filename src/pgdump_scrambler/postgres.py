"""PostgreSQL schema source backed by asyncpg."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

import asyncpg

_LOGGER = logging.getLogger(__name__)

QUERY_TABLE_COLUMNS = """
    SELECT t.table_name, c.column_name
    FROM information_schema.tables t
    LEFT JOIN information_schema.columns c
      ON c.table_schema = t.table_schema AND c.table_name = t.table_name
    WHERE t.table_schema = $1 AND t.table_type = 'BASE TABLE'
    ORDER BY t.table_name, c.ordinal_position
"""


async def fetch_table_columns(dsn: str, schema: str) -> Dict[str, List[str]]:
    """Return ``{table: [column, ...]}`` for every base table in ``schema``."""
    db_conn = await asyncpg.connect(dsn=dsn)
    try:
        rows = await db_conn.fetch(QUERY_TABLE_COLUMNS, schema)
    finally:
        await db_conn.close()

    catalog: Dict[str, List[str]] = {}
    for row in rows:
        columns = catalog.setdefault(row["table_name"], [])
        if row["column_name"] is not None:
            columns.append(row["column_name"])
    return catalog


class PostgresSchemaSource:
    """Read table and column names from a live PostgreSQL database."""

    def __init__(self, dsn: str, schema: str = "public") -> None:
        self.dsn = dsn
        self.schema = schema
        self._catalog: Optional[Dict[str, List[str]]] = None

    def _load(self) -> Dict[str, List[str]]:
        if self._catalog is None:
            _LOGGER.debug("Reading table columns from schema %s", self.schema)
            self._catalog = asyncio.run(fetch_table_columns(self.dsn, self.schema))
        return self._catalog

    def list_tables(self) -> List[str]:
        return list(self._load())

    def list_columns(self, table: str) -> Optional[List[str]]:
        columns = self._load().get(table)
        return None if columns is None else list(columns)
