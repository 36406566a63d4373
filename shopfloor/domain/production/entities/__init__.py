from .breakdown import Breakdown
from .jobsheet import Jobsheet
from .machine import Machine
from .manufacturing_order import ManufacturingOrder
from .order import Order
from .progress_node import ProgressNode
from .task import Task

__all__ = [
    "Breakdown",
    "Jobsheet",
    "Machine",
    "ManufacturingOrder",
    "Order",
    "ProgressNode",
    "Task",
]
