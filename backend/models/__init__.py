"""
Pydantic models for Folio.

All HTTP data shapes defined here. No imports from db or routes.
"""

from backend.models.portfolio import (
    AddBlockRequest,
    BlockIn,
    BlockResponse,
    CreatePortfolioRequest,
    MoveBlockRequest,
    PortfolioResponse,
    PublishRequest,
    ReorderBlocksRequest,
    UpdateBlockRequest,
    UpdatePortfolioRequest,
)

__all__ = [
    "BlockIn",
    "CreatePortfolioRequest",
    "UpdatePortfolioRequest",
    "AddBlockRequest",
    "UpdateBlockRequest",
    "MoveBlockRequest",
    "ReorderBlocksRequest",
    "PublishRequest",
    "BlockResponse",
    "PortfolioResponse",
]
