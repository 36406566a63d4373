"""Order entity: the top-level customer work order."""

from pydantic import Field

from ..value_objects.enums import HierarchyLevel, OrderStatus
from .progress_node import ProgressNode


class Order(ProgressNode):
    """Customer order; progress is the mean of its manufacturing orders."""

    level = HierarchyLevel.ORDER
    completed_status = OrderStatus.COMPLETED
    in_progress_status = OrderStatus.IN_PRODUCTION
    pre_production_statuses = frozenset(
        {OrderStatus.DRAFT, OrderStatus.PLANNING, OrderStatus.MATERIAL_PREPARATION}
    )

    order_number: str = ""
    customer_name: str = ""
    status: OrderStatus = Field(default=OrderStatus.DRAFT)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def display_label(self) -> str:
        return f"{self.order_number} - {self.customer_name}"
