from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Document(BaseModel):
    id: str
    name: str
    # Human-readable kind, e.g. "PDF Document".
    type: str
    url: str
    uploaded_at: datetime
    user_id: str
