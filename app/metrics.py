from collections import defaultdict
from typing import Dict, Iterable, Tuple


# (route, status) -> count
_http_requests_total: Dict[Tuple[str, str], int] = defaultdict(int)

# (operation, result) -> count
_chat_operations_total: Dict[Tuple[str, str], int] = defaultdict(int)

# upper bound in ms -> count, cumulative
_latency_buckets: Dict[str, int] = {"100": 0, "500": 0, "+Inf": 0}
_latency_count = 0


def inc_http_request(route: str, status: int) -> None:
    _http_requests_total[(route, str(status))] += 1


def inc_chat_operation(operation: str, result: str) -> None:
    _chat_operations_total[(operation, result)] += 1


def observe_latency_ms(latency_ms: float) -> None:
    global _latency_count
    _latency_count += 1
    for le in _latency_buckets:
        if le == "+Inf" or latency_ms <= float(le):
            _latency_buckets[le] += 1


def _series(name: str, labels: Tuple[str, ...], counts: Dict) -> Iterable[str]:
    for key, value in counts.items():
        values = key if isinstance(key, tuple) else (key,)
        pairs = ",".join(f'{label}="{v}"' for label, v in zip(labels, values))
        yield f"{name}{{{pairs}}} {value}"


def render_metrics() -> str:
    """Plain-text exposition of every counter."""
    lines = [
        *_series("http_requests_total", ("path", "status"), _http_requests_total),
        *_series("chat_operations_total", ("operation", "result"), _chat_operations_total),
        *_series("request_latency_ms_bucket", ("le",), _latency_buckets),
        f"request_latency_ms_count {_latency_count}",
    ]
    return "\n".join(lines) + "\n"
