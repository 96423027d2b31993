"""SmartCollar 异常类型。"""


class SmartCollarError(Exception):
    """所有 SmartCollar 异常的基类。"""


class StoreError(SmartCollarError):
    """数据存储读写失败（网络或后端错误）。"""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(f"{message} [{path}]" if path else message)
        self.path = path


class PushDeliveryError(SmartCollarError):
    """推送通道投递失败。"""
