from __future__ import annotations

DEFAULT_SAFETY_MARGIN_SECONDS = 5
DEFAULT_FLOOR_SECONDS = 10


def compute_time_budget(
    max_runtime_seconds: int,
    host_ceiling_seconds: int = 0,
    *,
    safety_margin_seconds: int = DEFAULT_SAFETY_MARGIN_SECONDS,
    floor_seconds: int = DEFAULT_FLOOR_SECONDS,
) -> int:
    """Seconds a single invocation may spend scanning.

    ``host_ceiling_seconds <= 0`` means the host imposes no limit, in which
    case the job's own ``max_runtime_seconds`` applies.
    """
    if host_ceiling_seconds <= 0:
        return max_runtime_seconds
    return max(floor_seconds, min(max_runtime_seconds, host_ceiling_seconds - safety_margin_seconds))
