# 各业务服务请求/响应模型：在边界处校验，不向上层透传无类型对象
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class _Payload(BaseModel):
    # 服务端可能附带额外字段，忽略即可
    model_config = ConfigDict(extra="ignore")


# ---------- S1 Profile ----------
class Profile(_Payload):
    name: str = ""
    email: str = ""
    bio: str = ""


# ---------- S2 Tickets ----------
class TicketStatus(str, Enum):
    OPEN = "OPEN"
    PICKED_UP = "PICKED_UP"


class Ticket(_Payload):
    id: str
    subject: str = ""
    description: str = ""
    studentName: str = ""
    counselorName: Optional[str] = None
    status: TicketStatus = TicketStatus.OPEN

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        # Node 服务可能返回数字 id
        return str(v) if isinstance(v, int) else v

    @property
    def is_picked_up(self) -> bool:
        return self.status is TicketStatus.PICKED_UP


class TicketCreate(_Payload):
    subject: str
    description: str
    studentName: str


class TicketPickup(_Payload):
    counselorName: str


# ---------- S3 Board ----------
class Post(_Payload):
    id: str
    content: str = ""
    author: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return str(v) if isinstance(v, int) else v


class PostCreate(_Payload):
    content: str
    author: str = "Anon"


# ---------- S4 Appointments ----------
class Appointment(_Payload):
    ticketId: Optional[str] = None
    studentSlot: Optional[str] = None
    hasVisited: bool = False

    @field_validator("ticketId", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return str(v) if isinstance(v, int) else v


class AppointmentSlot(_Payload):
    ticketId: str
    studentSlot: str
    hasVisited: bool = True


# ---------- S5 Counseling ----------
class CounselingStatus(_Payload):
    active: bool
