from .tasks import Task
from .orders import Order, OrderLineItem
from .sync import SyncHistory
from .inventory import InventoryItem
from .settings import AppSetting

__all__ = [
    'Task',
    'Order', 'OrderLineItem',
    'SyncHistory',
    'InventoryItem',
    'AppSetting',
]
