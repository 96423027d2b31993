"""Firebase 实时数据库存储适配。

firebase_admin 的 db 接口是阻塞的：读写放到线程池执行，监听回调在 SDK 的
后台线程触发，再投递回事件循环。
"""
import asyncio
import logging
from typing import Any, Callable, Optional

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

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

# 后端、凭据与路径校验错误统一转为 StoreError
_BACKEND_ERRORS = (FirebaseError, GoogleAuthError, ValueError)


def create_firebase_app(credentials_path: str, database_url: str) -> firebase_admin.App:
    """用服务账号 JSON 初始化 Firebase 应用（进程内一次）。"""
    cred = credentials.Certificate(credentials_path)
    return firebase_admin.initialize_app(cred, {"databaseURL": database_url})


def _log_future(fut) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.error("订阅回调异常", exc_info=exc)


class FirebaseTreeStore(TreeStore):
    """firebase_admin.db 之上的 TreeStore。"""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self._app = app
        self._listeners: list = []

    def _ref(self, path: str) -> db.Reference:
        return db.reference("/" + join_path(path), app=self._app)

    async def _run(self, path: str, fn: Callable, *args) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Firebase 操作失败: {e}", path) from e

    async def _call(self, path: str, method: str, *args) -> Any:
        """在线程池中创建引用并调用其方法（创建引用也可能失败）。"""
        return await self._run(path, lambda: getattr(self._ref(path), method)(*args))

    async def get(self, path: str) -> Any:
        return await self._call(path, "get")

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self.delete(path)
            return
        await self._call(path, "set", value)

    async def delete(self, path: str) -> None:
        await self._call(path, "delete")

    async def push(self, path: str, value: Any) -> str:
        ref = await self._call(path, "push", value)
        return ref.key

    async def transaction(self, path: str, update: Callable[[Any], Any]) -> Any:
        return await self._call(path, "transaction", update)

    def _submit(self, loop: asyncio.AbstractEventLoop, coro) -> None:
        fut = asyncio.run_coroutine_threadsafe(coro, loop)
        fut.add_done_callback(_log_future)

    async def watch(self, path: str, on_change: ValueCallback) -> Unsubscribe:
        loop = asyncio.get_running_loop()
        ref = await self._run(path, self._ref, path)

        def listener(event: db.Event) -> None:
            if event.event_type == "put" and event.path == "/":
                value = event.data
            else:
                try:
                    value = ref.get()
                except _BACKEND_ERRORS:
                    logger.exception("读取 %s 失败，忽略本次变更", path)
                    return
            self._submit(loop, on_change(value))

        registration = await self._run(path, ref.listen, listener)
        self._listeners.append(registration)
        return registration.close

    async def watch_children(self, path: str, on_added: ChildCallback) -> Unsubscribe:
        loop = asyncio.get_running_loop()
        ref = await self._run(path, self._ref, path)
        known: set = set()

        def added(key: str, value: Any) -> None:
            if value is None:
                known.discard(key)
                return
            if key in known:
                return
            known.add(key)
            self._submit(loop, on_added(key, value))

        def listener(event: db.Event) -> None:
            segments = split_path(event.path)
            if not segments:
                data = event.data if isinstance(event.data, dict) else {}
                if event.event_type == "put":
                    known.intersection_update(data)
                for key in sorted(data):
                    added(key, data[key])
                return
            key = segments[0]
            if len(segments) == 1:
                added(key, event.data)
            elif key not in known:
                try:
                    added(key, ref.child(key).get())
                except _BACKEND_ERRORS:
                    logger.exception("读取 %s/%s 失败", path, key)

        registration = await self._run(path, ref.listen, listener)
        self._listeners.append(registration)
        return registration.close

    async def close(self) -> None:
        for registration in self._listeners:
            registration.close()
        self._listeners.clear()
