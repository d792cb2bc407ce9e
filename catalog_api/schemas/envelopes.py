from pydantic import BaseModel
from typing import Any, Dict, Optional


class ErrorEnvelope(BaseModel):
    success: bool = False
    message: str
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

