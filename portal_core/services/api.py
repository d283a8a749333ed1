"""
业务服务类型化客户端（S1-S5）
全部经 ServiceInvoker 门控调用；响应在此处按 schemas 校验，不合法视为 InvocationError。
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from ..core.errors import InvocationError
from ..core.invoker import RequestOptions, ServiceInvoker
from ..core.registry.catalog import ServiceId
from .schemas import (
    Appointment,
    AppointmentSlot,
    CounselingStatus,
    Post,
    PostCreate,
    Profile,
    Ticket,
    TicketCreate,
    TicketPickup,
)

logger = logging.getLogger("portal.services")

M = TypeVar("M", bound=BaseModel)


def _validate(model: Type[M], data: Any, service: ServiceId, path: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvocationError(service.value, path, f"malformed response: {e.error_count()} validation error(s)") from e


def _validate_list(model: Type[M], data: Any, service: ServiceId, path: str) -> List[M]:
    if not isinstance(data, list):
        raise InvocationError(service.value, path, f"malformed response: expected list, got {type(data).__name__}")
    return [_validate(model, item, service, path) for item in data]


def _post(body: BaseModel) -> RequestOptions:
    return RequestOptions(method="POST", body=body.model_dump())


class _ServiceApi:
    service: ServiceId

    def __init__(self, invoker: ServiceInvoker):
        self.invoker = invoker

    def _call(self, path: str, options: Optional[RequestOptions] = None) -> Any:
        return self.invoker.invoke(self.service, path, options)


class ProfileApi(_ServiceApi):
    service = ServiceId.PROFILE

    def get(self, user: str) -> Profile:
        path = f"/profile/{quote(user, safe='')}"
        data = self._call(path)
        return _validate(Profile, data if data is not None else {}, self.service, path)

    def save(self, user: str, profile: Profile) -> None:
        self._call(f"/profile/{quote(user, safe='')}", _post(profile))


class TicketsApi(_ServiceApi):
    service = ServiceId.TICKETS

    def list(self) -> List[Ticket]:
        return _validate_list(Ticket, self._call("/tickets"), self.service, "/tickets")

    def for_user(self, user: str) -> List[Ticket]:
        """用户作为学生或咨询师参与的工单。"""
        return [t for t in self.list() if t.studentName == user or t.counselorName == user]

    def create(self, subject: str, description: str, student_name: str) -> None:
        self._call("/tickets", _post(TicketCreate(subject=subject, description=description, studentName=student_name)))

    def pickup(self, ticket_id: str, counselor_name: str) -> None:
        self._call(f"/tickets/{quote(str(ticket_id), safe='')}/pickup", _post(TicketPickup(counselorName=counselor_name)))


class BoardApi(_ServiceApi):
    service = ServiceId.BOARD

    def list(self) -> List[Post]:
        return _validate_list(Post, self._call("/posts"), self.service, "/posts")

    def post(self, content: str, author: str = "Anon") -> None:
        self._call("/posts", _post(PostCreate(content=content, author=author)))


class AppointmentsApi(_ServiceApi):
    service = ServiceId.APPOINTMENTS

    def get(self, ticket_id: str) -> Optional[Appointment]:
        """工单尚无预约时返回 None。"""
        path = f"/appointments/{quote(str(ticket_id), safe='')}"
        data = self._call(path)
        if not data:
            return None
        return _validate(Appointment, data, self.service, path)

    def save_slot(self, ticket_id: str, slot: str) -> None:
        self._call("/appointments", _post(AppointmentSlot(ticketId=str(ticket_id), studentSlot=slot, hasVisited=True)))


class CounselingApi(_ServiceApi):
    service = ServiceId.COUNSELING

    def status(self) -> CounselingStatus:
        return _validate(CounselingStatus, self._call("/status"), self.service, "/status")

    def is_active(self) -> bool:
        return self.status().active

    def toggle(self) -> CounselingStatus:
        return _validate(CounselingStatus, self._call("/toggle", RequestOptions(method="POST")), self.service, "/toggle")


class AppointmentStage(str, Enum):
    AWAITING_FIRST_SLOT = "AWAITING_FIRST_SLOT"
    WAITING_FOR_PICKUP = "WAITING_FOR_PICKUP"
    MATCHED = "MATCHED"
    CONFIRM_SLOT = "CONFIRM_SLOT"


def appointment_stage(ticket: Ticket, appointment: Optional[Appointment]) -> AppointmentStage:
    """
    预约阶段：
    未接单且首次 -> 提议时段；未接单且已提议 -> 等待接单；
    已接单且有时段 -> 匹配完成；已接单无时段 -> 确认时段。
    """
    has_slot = bool(appointment and appointment.studentSlot)
    first_visit = not (appointment and appointment.hasVisited)
    if not ticket.is_picked_up:
        return AppointmentStage.AWAITING_FIRST_SLOT if first_visit else AppointmentStage.WAITING_FOR_PICKUP
    return AppointmentStage.MATCHED if has_slot else AppointmentStage.CONFIRM_SLOT


__all__ = [
    "ProfileApi",
    "TicketsApi",
    "BoardApi",
    "AppointmentsApi",
    "CounselingApi",
    "AppointmentStage",
    "appointment_stage",
]
