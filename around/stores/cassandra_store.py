"""Cassandra-backed wide-column store for post rows"""

from datetime import datetime, timezone
from typing import List, Optional

from cassandra import DriverException
from cassandra.cluster import Cluster, NoHostAvailable, Session
from cassandra.query import BatchStatement, BatchType

from ..utils.exceptions import StoreUnavailable
from ..utils.logger import get_logger
from .base import Cells, WideColumnStore

logger = get_logger(__name__)

STORE_ERRORS = (DriverException, NoHostAvailable)


def _to_micros(timestamp: datetime) -> int:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return int(timestamp.timestamp() * 1_000_000)


class CassandraWideColumnStore(WideColumnStore):
    """
    One partition per row key, one clustered row per (family, column) cell.
    Cell versions are carried by the write timestamp (USING TIMESTAMP).
    """

    def __init__(
        self,
        hosts: List[str],
        port: int = 9042,
        keyspace: str = "around",
        table: str = "post",
        timeout_seconds: float = 5.0,
        session: Optional[Session] = None,
    ):
        self.hosts = hosts
        self.port = port
        self.keyspace = keyspace
        self.table = table
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._insert = None

    @property
    def session(self) -> Session:
        if self._session is None:
            try:
                cluster = Cluster(self.hosts, port=self.port, connect_timeout=self.timeout_seconds)
                self._session = cluster.connect()
            except STORE_ERRORS as e:
                raise StoreUnavailable(self.name, e) from e
        return self._session

    def ensure_ready(self) -> None:
        try:
            self.session.execute(
                f"CREATE KEYSPACE IF NOT EXISTS {self.keyspace} "
                "WITH replication = {'class': 'SimpleStrategy', 'replication_factor': 1}",
                timeout=self.timeout_seconds,
            )
            self.session.execute(
                f"CREATE TABLE IF NOT EXISTS {self.keyspace}.{self.table} ("
                "row_key text, family text, qualifier text, value blob, "
                "PRIMARY KEY (row_key, family, qualifier))",
                timeout=self.timeout_seconds,
            )
        except STORE_ERRORS as e:
            raise StoreUnavailable(self.name, e) from e

    def _prepared_insert(self):
        if self._insert is None:
            self._insert = self.session.prepare(
                f"INSERT INTO {self.keyspace}.{self.table} (row_key, family, qualifier, value) "
                "VALUES (?, ?, ?, ?) USING TIMESTAMP ?"
            )
        return self._insert

    def append_row(self, row_key: str, cells: Cells, timestamp: datetime) -> None:
        micros = _to_micros(timestamp)
        try:
            insert = self._prepared_insert()
            # Single-partition batch: every cell of the row lands or none does
            batch = BatchStatement(batch_type=BatchType.UNLOGGED)
            for family, columns in cells.items():
                for column, value in columns.items():
                    batch.add(insert, (row_key, family, column, value, micros))
            self.session.execute(batch, timeout=self.timeout_seconds)
        except STORE_ERRORS as e:
            raise StoreUnavailable(self.name, e) from e
        logger.info("Post saved to wide-column store", row_key=row_key, table=self.table)
