"""
Pydantic schemas for the research tree.
"""

from typing import List, Optional

from pydantic import BaseModel


class ResearchPurchaseRequest(BaseModel):
    node_id: str


class ResearchNodeState(BaseModel):
    id: str
    name: str
    category: str
    description: str
    cost_rp: int
    effective_cost: int
    min_level: int
    prerequisites: List[str]
    is_purchased: bool
    is_in_progress: bool
    is_available: bool
    lock_reason: Optional[str] = None
