"""Shop models"""
from enum import Enum
from typing import Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field

from farmfocus.models.garden import Bed, Seed


class GoodKind(str, Enum):
    """Kinds of purchasable goods"""
    SEED = "seed"
    BED = "bed"
    TOOL = "tool"
    FERTILIZER = "fertilizer"


class Good(BaseModel):
    """A user's shop entry: stock and price of one item"""
    id: Optional[int] = None
    user_id: int
    kind: GoodKind
    ref_id: int  # seed id for SEED goods, 0 for BED
    quantity: int = Field(default=0, ge=0)
    cost: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=datetime.now)


class PurchaseResult(BaseModel):
    """Outcome of buying one unit of a good"""
    good_id: int
    kind: GoodKind
    ref_id: int
    total_cost: int
    remaining: int
    gold_left: int
    item: Union[Seed, Bed]
