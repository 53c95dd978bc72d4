from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ClientProfile(BaseModel):
    """Trainer's client as stored in Firestore (only the fields used here)."""
    id: str = Field(..., description="Client document ID")
    name: str = Field("Client", description="Display name")
    email: Optional[str] = Field(None, description="Client email")
    dateJoined: Optional[Any] = Field(None, description="When the client was added (timestamp or ISO string)")
    targetWeight: Optional[float] = Field(None, description="Goal weight used by the Goal Crusher badge")

    @classmethod
    def from_document(cls, client_id: str, data: Optional[Dict[str, Any]]) -> "ClientProfile":
        """Build a profile from a raw Firestore document, ignoring unusable fields."""
        data = data or {}
        target_weight = data.get("targetWeight")
        try:
            target_weight = float(target_weight) if target_weight is not None else None
        except (TypeError, ValueError):
            target_weight = None
        name = data.get("name")
        email = data.get("email")
        return cls(
            id=client_id,
            name=str(name) if name not in (None, "") else "Client",
            email=email if isinstance(email, str) else None,
            dateJoined=data.get("dateJoined"),
            targetWeight=target_weight,
        )
