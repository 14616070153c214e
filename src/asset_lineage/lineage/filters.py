from __future__ import annotations

from .models import LineageResult


def filter_out_processes(result: LineageResult) -> LineageResult:
    """Drop process vertices and every edge touching one."""
    result.remove_vertices({v.node_id for v in result.vertices.values() if v.is_process})
    return result


def filter_display_name(result: LineageResult, must_contain: str, *, case_sensitive: bool = False) -> LineageResult:
    """Keep only vertices whose display name contains `must_contain`, and the edges between them."""
    if not must_contain:
        return result
    needle = must_contain if case_sensitive else must_contain.casefold()

    def matches(name: str) -> bool:
        return needle in (name if case_sensitive else name.casefold())

    result.remove_vertices({v.node_id for v in result.vertices.values() if not matches(v.display_name)})
    return result
