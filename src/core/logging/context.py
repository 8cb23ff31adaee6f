"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_run_id: ContextVar[str] = ContextVar("run_id", default="")
_stage_name: ContextVar[str] = ContextVar("stage_name", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    run_id: Optional[str] = None,
    stage: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if run_id is not None:
        _run_id.set(run_id)
    if stage is not None:
        _stage_name.set(stage)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    return {
        "run_id": _run_id.get(),
        "stage": _stage_name.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _run_id.set("")
    _stage_name.set("")
    _trace_id.set("")
