"""
State models for the focus timer.
"""

from typing import Literal, Optional

from pydantic import BaseModel

from focusly.config import WORK_TIME

TimerStatus = Literal["idle", "working", "break", "completed"]


class TimerState(BaseModel):
    status: TimerStatus = "idle"
    time_left: int = WORK_TIME
    active_node_id: Optional[str] = None
    paused_node_id: Optional[str] = None  #set only while a working session is paused
    duration: int = WORK_TIME
    total_sessions: int = 0
    interval: int = WORK_TIME  #length of the current interval, work or break
