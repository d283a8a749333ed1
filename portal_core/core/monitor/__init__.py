from .client import emit_invocation, new_trace_id

__all__ = ["emit_invocation", "new_trace_id"]
