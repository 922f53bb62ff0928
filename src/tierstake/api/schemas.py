# src/tierstake/api/schemas.py
from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input validation. The per-tx payload rules live in
tierstake.runtime.apply.staking and are enforced there.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TxSubmitRequest(BaseModel):
    tx_type: str = Field(..., min_length=1, description="e.g. STAKE, UNSTAKE, STAKING_REWARDS_CLAIM")
    signer: str = Field(..., min_length=1, description="Account id submitting the tx")
    nonce: int = Field(..., gt=0, description="Must exceed the signer's last used nonce")
    payload: Dict[str, Any] = Field(default_factory=dict)
    sig: str = Field(default="", description="Hex ed25519 signature over the canonical tx message")
    parent: Optional[str] = None

    model_config = {"extra": "forbid"}

    def to_envelope(self) -> Dict[str, Any]:
        out = self.model_dump()
        if out.get("parent") is None:
            out.pop("parent", None)
        return out
