import logging
from typing import Iterable, List

import redis
from pydantic import ValidationError

from cliphistory.database.base import HistoryStorage, sort_for_display
from cliphistory.database.schema import EntryRecord
from cliphistory.errors import PersistenceError
from cliphistory.models import Entry

logger = logging.getLogger(__name__)


class RedisHistoryStorage(HistoryStorage):
    """History storage backed by Redis hashes plus an id index set."""

    def __init__(self, client: redis.Redis, namespace: str = "cliphistory",
                 check_connection: bool = True):
        self.client = client
        self.namespace = namespace
        if check_connection:
            self._test_connection()

    def _test_connection(self):
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise PersistenceError("connect", str(e)) from e

    @property
    def index_key(self) -> str:
        return f"{self.namespace}:clips"

    def entry_key(self, entry_id: str) -> str:
        return f"{self.namespace}:clip:{entry_id}"

    def upsert(self, entry: Entry) -> None:
        mapping = EntryRecord.from_entry(entry).to_mapping()
        try:
            pipe = self.client.pipeline()
            pipe.hset(self.entry_key(entry.entry_id), mapping=mapping)
            pipe.sadd(self.index_key, entry.entry_id)
            pipe.execute()
        except redis.RedisError as e:
            raise PersistenceError("upsert", str(e), entry.entry_id) from e

    def delete(self, entry_id: str) -> bool:
        try:
            pipe = self.client.pipeline()
            pipe.delete(self.entry_key(entry_id))
            pipe.srem(self.index_key, entry_id)
            removed, _ = pipe.execute()
        except redis.RedisError as e:
            raise PersistenceError("delete", str(e), entry_id) from e
        return bool(removed)

    def delete_many(self, entry_ids: Iterable[str]) -> int:
        ids = list(entry_ids)
        if not ids:
            return 0
        try:
            pipe = self.client.pipeline()
            pipe.delete(*[self.entry_key(entry_id) for entry_id in ids])
            pipe.srem(self.index_key, *ids)
            removed, _ = pipe.execute()
        except redis.RedisError as e:
            raise PersistenceError("delete", str(e)) from e
        return int(removed)

    def delete_all(self) -> None:
        try:
            entry_ids = self.client.smembers(self.index_key)
            keys = [self.entry_key(entry_id) for entry_id in entry_ids]
            self.client.delete(self.index_key, *keys)
        except redis.RedisError as e:
            raise PersistenceError("delete_all", str(e)) from e

    def load_all(self) -> List[Entry]:
        try:
            entry_ids = sorted(self.client.smembers(self.index_key))
            pipe = self.client.pipeline()
            for entry_id in entry_ids:
                pipe.hgetall(self.entry_key(entry_id))
            rows = pipe.execute() if entry_ids else []
        except redis.RedisError as e:
            raise PersistenceError("load", str(e)) from e

        entries = []
        stale = []
        for entry_id, data in zip(entry_ids, rows):
            if not data:
                logger.warning("Index references missing record %s", entry_id)
                stale.append(entry_id)
                continue
            try:
                entries.append(EntryRecord.model_validate(data).to_entry())
            except ValidationError as e:
                logger.warning("Skipping malformed record %s: %s", entry_id, e)
                stale.append(entry_id)

        if stale:
            self._purge(stale)
        return sort_for_display(entries)

    def _purge(self, entry_ids: List[str]) -> None:
        """Drop unreadable records so they cannot shadow later captures."""
        try:
            self.delete_many(entry_ids)
        except PersistenceError as e:
            logger.warning("Could not remove unreadable records %s: %s", entry_ids, e)

    def close(self):
        self.client.close()
