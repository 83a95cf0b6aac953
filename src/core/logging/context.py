"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_cluster_name: ContextVar[str] = ContextVar("cluster_name", default="")
_component: ContextVar[str] = ContextVar("component", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    cluster_name: Optional[str] = None,
    component: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if cluster_name is not None:
        _cluster_name.set(cluster_name)
    if component is not None:
        _component.set(component)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    return {
        "cluster_name": _cluster_name.get(),
        "component": _component.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _cluster_name.set("")
    _component.set("")
    _trace_id.set("")
