"""层级键值存储接口：点读写、删除、追加、事务与变更订阅。"""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List

# 路径用 "/" 分隔，如 users/{uid}/pets/{pet_id}/geofence
ValueCallback = Callable[[Any], Awaitable[None]]
ChildCallback = Callable[[str, Any], Awaitable[None]]
Unsubscribe = Callable[[], None]


def split_path(path: str) -> List[str]:
    """规范化路径为段列表；空路径表示根。"""
    return [p for p in path.strip("/").split("/") if p]


def join_path(*parts: str) -> str:
    return "/".join(seg for part in parts for seg in split_path(str(part)))


class TreeStore(ABC):
    """所有后端错误以 StoreError 抛出。"""

    @abstractmethod
    async def get(self, path: str) -> Any:
        """读取路径上的值，不存在返回 None。"""

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        """写入（覆盖）路径上的值；写 None 等同删除。"""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """删除路径；不存在时无操作。"""

    @abstractmethod
    async def push(self, path: str, value: Any) -> str:
        """在集合路径下以按时间排序的新键追加一条记录，返回新键。"""

    @abstractmethod
    async def transaction(self, path: str, update: Callable[[Any], Any]) -> Any:
        """原子读-改-写：update(当前值) 返回新值，返回最终提交的值。

        update 可能被重试多次，必须无副作用（除记录本次决定外）。
        """

    @abstractmethod
    async def watch(self, path: str, on_change: ValueCallback) -> Unsubscribe:
        """订阅路径值：注册时回调一次当前值，之后路径或其子路径变化时再回调。"""

    @abstractmethod
    async def watch_children(self, path: str, on_added: ChildCallback) -> Unsubscribe:
        """订阅子节点：对每个已有子键和之后新增的子键各回调一次 (key, value)。"""

    async def close(self) -> None:
        """释放订阅与连接。"""
