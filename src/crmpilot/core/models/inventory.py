"""InventoryItem / PurchaseOrder Domain Model

status 不是权威字段，始终由 current_stock 与 reorder_point 推导。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field
from ulid import ULID

from .enums import InventoryStatus

# 低于再订货点该比例即视为 critical
CRITICAL_STOCK_RATIO = 0.2


def derive_inventory_status(current_stock: int, reorder_point: int) -> InventoryStatus:
    """根据库存量与再订货点推导库存状态"""
    if current_stock <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if current_stock <= reorder_point * CRITICAL_STOCK_RATIO:
        return InventoryStatus.CRITICAL
    if current_stock <= reorder_point:
        return InventoryStatus.LOW
    return InventoryStatus.HEALTHY


class InventoryItem(BaseModel):
    """InventoryItem 数据模型，sku 为唯一键"""

    sku: str = Field(description="SKU，唯一键")
    name: str = Field(description="物料名称")
    current_stock: int = Field(ge=0, description="当前库存，非负")
    reorder_point: int = Field(default=0, ge=0, description="再订货点")
    max_stock: int = Field(default=0, ge=0, description="最大库存")
    daily_demand: int = Field(default=0, ge=0, description="日均需求")
    supplier_eta_days: int = Field(default=0, ge=0, description="供应商交期（天）")
    backorders: int = Field(default=0, ge=0, description="缺货待发数量")
    unit_cost: float = Field(default=0.0, ge=0, description="单位成本")
    supplier: str = Field(default="", description="供应商")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> InventoryStatus:
        return derive_inventory_status(self.current_stock, self.reorder_point)


def _new_order_id() -> str:
    return f"PO-{ULID()}"


class PurchaseOrder(BaseModel):
    """采购单"""

    order_id: str = Field(default_factory=_new_order_id, description="采购单号")
    sku: str
    item_name: str
    quantity: int = Field(ge=0)
    unit_cost: float
    total_cost: float
    supplier: str = ""
    expected_delivery: datetime = Field(description="预计到货时间")
    status: str = Field(default="submitted")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
