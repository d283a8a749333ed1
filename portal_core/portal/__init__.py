from .state import ActionResult, AdminRow, Feedback, PortalState, ServiceCard

__all__ = ["ActionResult", "AdminRow", "Feedback", "PortalState", "ServiceCard"]
