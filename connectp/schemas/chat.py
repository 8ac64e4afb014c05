from pydantic import BaseModel

class ChatTokenOut(BaseModel):
    token: str
