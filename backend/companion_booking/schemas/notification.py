from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    data: Optional[dict[str, Any]]
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
