"""
Pydantic models for service endpoints outside the action protocol.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    evm_rpc: bool = Field(..., description="EVM RPC connectivity")
    chain_id: int = Field(..., description="Target EVM chain ID")
    nft_contract: str = Field(..., description="Drop contract address")
