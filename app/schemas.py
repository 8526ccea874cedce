"""
Request bodies accepted by the API.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class HistoryAddRequest(BaseModel):
    timestamp: Optional[float] = 0
    duration: Optional[float] = 0


class VideoIdsRequest(BaseModel):
    videoIds: Optional[list[Any]] = None


class ReminderRequest(BaseModel):
    remindAt: Optional[str] = None
