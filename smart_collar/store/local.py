"""本地 JSON 树存储（单进程；无 Firebase 时使用，也用于测试）。"""
import asyncio
import copy
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from smart_collar.clock import to_epoch_ms, utc_now
from smart_collar.config import DATA_DIR
from smart_collar.exceptions import StoreError
from smart_collar.store.base import (
    ChildCallback,
    TreeStore,
    Unsubscribe,
    ValueCallback,
    join_path,
    split_path,
)

logger = logging.getLogger(__name__)


def _related(a: List[str], b: List[str]) -> bool:
    """两路径是否互为祖先/后代（写入其一可能改变另一个的值）。"""
    n = min(len(a), len(b))
    return a[:n] == b[:n]


def _normalize(value: Any, path: str) -> Any:
    """按 JSON 语义归一化（元组→列表等）；空字典等同删除。"""
    if value is None:
        return None
    try:
        value = json.loads(json.dumps(value))
    except (TypeError, ValueError) as e:
        raise StoreError(f"值无法序列化: {e}", path) from e
    return None if value == {} else value


@dataclass
class _ValueWatch:
    segments: List[str]
    callback: ValueCallback


@dataclass
class _ChildWatch:
    segments: List[str]
    callback: ChildCallback
    known: Set[str] = field(default_factory=set)


class JsonTreeStore(TreeStore):
    """整棵树保存在内存，有变化的写入才落盘到 tree.json。

    读-改-写在第一个 await 之前完成，事务天然原子。落盘在线程池执行，
    失败时回滚内存中的改动并抛 StoreError。订阅回调以后台任务运行，
    join() 等待全部回调完成。
    """
    _filename = "tree.json"

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or DATA_DIR
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._tree: Dict[str, Any] = self._load()
        self._value_watches: List[_ValueWatch] = []
        self._child_watches: List[_ChildWatch] = []
        self._tasks: Set[asyncio.Task] = set()
        self._push_seq = 0
        self._file_lock = threading.Lock()
        self._save_seq = 0
        self._saved_seq = 0

    def _path(self) -> Path:
        return self.base_dir / self._filename

    def _load(self) -> Dict[str, Any]:
        if not self._path().exists():
            return {}
        try:
            with open(self._path(), "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"读取本地存储失败: {e}", str(self._path())) from e
        return data if isinstance(data, dict) else {}

    def _dump(self, text: str, seq: int) -> None:
        """写文件（线程池中执行）；较旧的快照不会覆盖较新的。"""
        with self._file_lock:
            if seq <= self._saved_seq:
                return
            try:
                with open(self._path(), "w", encoding="utf-8") as f:
                    f.write(text)
            except OSError as e:
                raise StoreError(f"写入本地存储失败: {e}", str(self._path())) from e
            self._saved_seq = seq

    async def _save(self) -> None:
        self._save_seq += 1
        text = json.dumps(self._tree, indent=2, ensure_ascii=False)
        await asyncio.to_thread(self._dump, text, self._save_seq)

    # --- 树操作 ---

    def _read(self, segments: List[str]) -> Any:
        node: Any = self._tree
        for seg in segments:
            if not isinstance(node, dict) or seg not in node:
                return None
            node = node[seg]
        return copy.deepcopy(node)

    def _write(self, segments: List[str], value: Any) -> None:
        """value 须已归一化。"""
        if not segments:
            self._tree = value if isinstance(value, dict) else {}
            return
        if value is None:
            self._remove(segments)
            return
        node = self._tree
        for seg in segments[:-1]:
            child = node.get(seg)
            if not isinstance(child, dict):
                child = {}
                node[seg] = child
            node = child
        node[segments[-1]] = value

    def _remove(self, segments: List[str]) -> None:
        chain = [self._tree]
        node: Any = self._tree
        for seg in segments[:-1]:
            if not isinstance(node, dict) or not isinstance(node.get(seg), dict):
                return
            node = node[seg]
            chain.append(node)
        node.pop(segments[-1], None)
        # 空节点不存在：向上清理
        for parent, seg in zip(reversed(chain[:-1]), reversed(segments[:-1])):
            if parent.get(seg) == {}:
                parent.pop(seg)
            else:
                break

    async def _mutate(self, path: str, value: Any) -> bool:
        """写入、落盘并通知相关订阅者；值未变化时什么都不做，返回是否有改动。"""
        segments = split_path(path)
        new = _normalize(value, path)
        old = self._read(segments)
        if new == old:
            return False
        values = [(w, self._read(w.segments)) for w in self._value_watches if _related(w.segments, segments)]
        children = [w for w in self._child_watches if _related(w.segments, segments)]
        self._write(segments, new)
        try:
            await self._save()
        except StoreError:
            # 期间没有其他写入覆盖时才回滚
            if self._read(segments) == new:
                self._write(segments, old)
            raise
        for w, before in values:
            after = self._read(w.segments)
            if after != before:
                self._schedule(w.callback(after))
        for cw in children:
            current = self._read(cw.segments)
            keys = set(current) if isinstance(current, dict) else set()
            for key in sorted(keys - cw.known):
                self._schedule(cw.callback(key, current[key]))
            cw.known = keys
        return True

    # --- 回调任务 ---

    def _schedule(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("订阅回调异常", exc_info=exc)

    async def join(self) -> None:
        """等待所有已触发的订阅回调（含回调中再触发的）完成。"""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # --- TreeStore ---

    async def get(self, path: str) -> Any:
        return self._read(split_path(path))

    async def set(self, path: str, value: Any) -> None:
        await self._mutate(path, value)

    async def delete(self, path: str) -> None:
        await self._mutate(path, None)

    async def push(self, path: str, value: Any) -> str:
        self._push_seq = (self._push_seq + 1) % 10_000
        key = f"{to_epoch_ms(utc_now()):013d}{self._push_seq:04d}"
        await self._mutate(join_path(path, key), value)
        return key

    async def transaction(self, path: str, update: Callable[[Any], Any]) -> Any:
        await self._mutate(path, update(self._read(split_path(path))))
        return self._read(split_path(path))

    async def watch(self, path: str, on_change: ValueCallback) -> Unsubscribe:
        w = _ValueWatch(split_path(path), on_change)
        self._value_watches.append(w)
        self._schedule(on_change(self._read(w.segments)))

        def unsubscribe() -> None:
            if w in self._value_watches:
                self._value_watches.remove(w)
        return unsubscribe

    async def watch_children(self, path: str, on_added: ChildCallback) -> Unsubscribe:
        cw = _ChildWatch(split_path(path), on_added)
        current = self._read(cw.segments)
        if isinstance(current, dict):
            cw.known = set(current)
            for key in sorted(current):
                self._schedule(on_added(key, current[key]))
        self._child_watches.append(cw)

        def unsubscribe() -> None:
            if cw in self._child_watches:
                self._child_watches.remove(cw)
        return unsubscribe

    async def close(self) -> None:
        self._value_watches.clear()
        self._child_watches.clear()
        for task in list(self._tasks):
            task.cancel()
        await self.join()
