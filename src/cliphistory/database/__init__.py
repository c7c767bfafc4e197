"""
Storage backends for cliphistory.

Provides durable record stores for clipboard history entries.
"""

from cliphistory.database.base import HistoryStorage, sort_for_display
from cliphistory.database.memory import MemoryHistoryStorage
from cliphistory.database.redis_manager import RedisHistoryStorage

__all__ = [
    'HistoryStorage',
    'MemoryHistoryStorage',
    'RedisHistoryStorage',
    'sort_for_display',
]
