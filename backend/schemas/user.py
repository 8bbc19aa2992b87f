from pydantic import BaseModel
from typing import Optional

# Schema for JWT payload contents
class TokenData(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None
