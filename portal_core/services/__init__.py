# 业务服务客户端（profile / tickets / board / appointments / counseling）
from .api import (
    AppointmentStage,
    AppointmentsApi,
    BoardApi,
    CounselingApi,
    ProfileApi,
    TicketsApi,
    appointment_stage,
)
from .schemas import Appointment, CounselingStatus, Post, Profile, Ticket, TicketStatus

__all__ = [
    "AppointmentStage",
    "AppointmentsApi",
    "BoardApi",
    "CounselingApi",
    "ProfileApi",
    "TicketsApi",
    "appointment_stage",
    "Appointment",
    "CounselingStatus",
    "Post",
    "Profile",
    "Ticket",
    "TicketStatus",
]
