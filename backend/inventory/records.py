"""
Product records and reorder decisions shared by the analysis engine.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DecisionLabel(str, Enum):
    """Binary outcome of the reorder classifier."""

    REORDER = "Reorder"
    SAFE = "Safe"


# Badge text shown next to each product in the dashboard table
STATUS_BADGES = {
    DecisionLabel.REORDER: "Low Stock",
    DecisionLabel.SAFE: "Sufficient",
}


class ProductRecord(BaseModel):
    """A product as returned by GET /api/products. Immutable once fetched."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    current_inventory: int = Field(..., ge=0)
    avg_sales: int = Field(..., ge=0)  # units per week
    lead_time: int = Field(..., ge=0)  # days
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def features(self) -> tuple[int, int, int]:
        """Classifier input: raw (stock, sales velocity, lead time)."""
        return (self.current_inventory, self.avg_sales, self.lead_time)


@dataclass(frozen=True)
class Decision:
    """Per-product inference output."""

    score: float
    label: DecisionLabel

    @property
    def needs_reorder(self) -> bool:
        return self.label is DecisionLabel.REORDER
