"""SmartCollar 宠物项圈告警与通知后端。"""

__version__ = "0.3.0"
