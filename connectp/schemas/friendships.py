from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from .users import PublicUserOut

class FriendRequestOut(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class IncomingRequestOut(BaseModel):
    id: int
    status: str
    created_at: Optional[datetime] = None
    sender: PublicUserOut

    model_config = ConfigDict(from_attributes=True)

class OutgoingRequestOut(BaseModel):
    id: int
    status: str
    created_at: Optional[datetime] = None
    recipient: PublicUserOut

    model_config = ConfigDict(from_attributes=True)

class FriendRequestsOut(BaseModel):
    incoming_reqs: List[IncomingRequestOut]
    accepted_by_others_reqs: List[OutgoingRequestOut]
