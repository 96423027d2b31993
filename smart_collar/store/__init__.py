"""数据存储：层级键值接口与本地 / Firebase 实现。"""
from smart_collar.store.base import TreeStore
from smart_collar.store.local import JsonTreeStore

__all__ = ["TreeStore", "JsonTreeStore"]
