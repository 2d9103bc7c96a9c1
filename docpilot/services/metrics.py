from __future__ import annotations

import contextvars
import time
from typing import Any, Dict, List, Optional

# Context-local aggregator for one invocation (a chat turn or a report run)
run_ctx: contextvars.ContextVar[Optional[Dict[str, Any]]] = contextvars.ContextVar("call_metrics", default=None)


def now() -> float:
    return time.perf_counter()


def elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


def begin_run() -> None:
    run_ctx.set({"http": {}, "llm": {}})


def _percentile(values: List[int], p: float) -> Optional[int]:
    if not values:
        return None
    s = sorted(values)
    k = max(0, min(len(s) - 1, int(round((p / 100.0) * (len(s) - 1)))))
    return int(s[k])


def _summarize_latencies(values: List[int]) -> Dict[str, Optional[int]]:
    if not values:
        return {"p50": None, "p95": None, "max": None}
    return {"p50": _percentile(values, 50), "p95": _percentile(values, 95), "max": max(values)}


def end_run() -> Dict[str, Any]:
    """Summarize and clear the current run."""
    agg = run_ctx.get() or {}
    out: Dict[str, Any] = {"http": {}, "llm": {}}
    for name, v in (agg.get("http") or {}).items():
        out["http"][name] = {
            "req": int(v.get("req", 0)),
            "status": v.get("status", {}),
            "latency": _summarize_latencies(v.get("latency_ms", [])),
        }
    for key, v in (agg.get("llm") or {}).items():
        out["llm"][key] = {
            "calls": int(v.get("calls", 0)),
            "errors": int(v.get("errors", 0)),
            "latency": _summarize_latencies(v.get("latency_ms", [])),
        }
    run_ctx.set(None)
    return out


def record_http(provider: str, endpoint: str, status: int, latency_ms: int) -> None:
    agg = run_ctx.get()
    if agg is None:
        return
    key = f"{provider}:{endpoint}"
    entry = agg["http"].setdefault(key, {"req": 0, "status": {}, "latency_ms": []})
    entry["req"] += 1
    code_key = str(int(status))
    entry["status"][code_key] = int(entry["status"].get(code_key, 0)) + 1
    entry["latency_ms"].append(int(latency_ms))


def record_llm(provider: str, model: str, *, latency_ms: int = 0, ok: bool = True) -> None:
    agg = run_ctx.get()
    if agg is None:
        return
    key = f"{provider}:{model}"
    entry = agg["llm"].setdefault(key, {"calls": 0, "errors": 0, "latency_ms": []})
    entry["calls"] += 1
    if latency_ms:
        entry["latency_ms"].append(int(latency_ms))
    if not ok:
        entry["errors"] += 1
