from __future__ import annotations

import logging
from datetime import datetime, timezone

from neo4j import GraphDatabase
from neo4j.exceptions import Neo4jError

logger = logging.getLogger(__name__)


class Neo4jKeyValueStore:
    """Key-value slots stored as (:KeyValueSlot {key, value}) nodes.

    Falls back to a process-local dict when Neo4j is not configured or the
    driver cannot reach the server.
    """

    def __init__(self, uri: str, user: str, password: str, database: str | None = None) -> None:
        self.enabled = bool(uri and user and password)
        self.database = database or None
        self._driver = None
        if self.enabled:
            try:
                self._driver = GraphDatabase.driver(uri, auth=(user, password))
                self._driver.verify_connectivity()
            except Exception:
                logger.warning("Neo4j unreachable at %s, keeping history in memory", uri)
                self.enabled = False
                self._driver = None

        self._memory_slots: dict[str, str] = {}

    def close(self) -> None:
        if self._driver is not None:
            self._driver.close()

    def ensure_schema(self) -> None:
        if not self.enabled or self._driver is None:
            return

        try:
            with self._driver.session(database=self.database) as session:
                session.run(
                    "CREATE CONSTRAINT key_value_slot_key IF NOT EXISTS "
                    "FOR (s:KeyValueSlot) REQUIRE s.key IS UNIQUE"
                )
        except Neo4jError:
            logger.exception("Could not create Neo4j schema, keeping history in memory")
            self.enabled = False

    def get(self, key: str) -> str | None:
        if self.enabled and self._driver is not None:
            with self._driver.session(database=self.database) as session:
                record = session.run(
                    """
                    MATCH (s:KeyValueSlot {key: $key})
                    RETURN s.value AS value
                    """,
                    key=key,
                ).single()
                if record is None:
                    return None
                value = record["value"]
                return value if isinstance(value, str) else None

        return self._memory_slots.get(key)

    def set(self, key: str, value: str) -> None:
        if self.enabled and self._driver is not None:
            with self._driver.session(database=self.database) as session:
                session.run(
                    """
                    MERGE (s:KeyValueSlot {key: $key})
                    SET s.value = $value, s.updated_at = datetime($now)
                    """,
                    key=key,
                    value=value,
                    now=datetime.now(timezone.utc).isoformat(),
                )
            return
        self._memory_slots[key] = value

    def remove(self, key: str) -> None:
        if self.enabled and self._driver is not None:
            with self._driver.session(database=self.database) as session:
                session.run(
                    """
                    MATCH (s:KeyValueSlot {key: $key})
                    DELETE s
                    """,
                    key=key,
                )
            return
        self._memory_slots.pop(key, None)
