"""Central registry for Prometheus metrics used by the friendship engine."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

FRIEND_REQUESTS_SENT = Counter(
	"friendgraph_friend_requests_sent_total",
	"Friend requests created",
)

FRIEND_REQUESTS_ACCEPTED = Counter(
	"friendgraph_friend_requests_accepted_total",
	"Friend requests accepted",
)

FRIEND_REQUESTS_DENIED = Counter(
	"friendgraph_friend_requests_denied_total",
	"Friend requests denied",
)

FRIEND_REQUEST_REJECTS = Counter(
	"friendgraph_friend_request_rejects_total",
	"Rejected friend request attempts",
	["reason"],
)

STORE_ERRORS = Counter(
	"friendgraph_store_errors_total",
	"Relationship/identity store failures surfaced to callers",
	["operation"],
)

FOF_FANOUT = Histogram(
	"friendgraph_fof_fanout_size",
	"Number of per-friend sub-queries issued by one friends-of-friends traversal",
	buckets=(0, 1, 2, 5, 10, 25, 50, 100, 250, 500),
)

FOF_DURATION = Histogram(
	"friendgraph_fof_duration_seconds",
	"Friends-of-friends traversal latency in seconds",
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)


def inc_request_sent() -> None:
	FRIEND_REQUESTS_SENT.inc()


def inc_request_accepted() -> None:
	FRIEND_REQUESTS_ACCEPTED.inc()


def inc_request_denied() -> None:
	FRIEND_REQUESTS_DENIED.inc()


def inc_request_reject(reason: str) -> None:
	FRIEND_REQUEST_REJECTS.labels(reason=reason).inc()


def inc_store_error(operation: str) -> None:
	STORE_ERRORS.labels(operation=operation).inc()


def observe_fof(fanout: int, duration_seconds: float) -> None:
	FOF_FANOUT.observe(fanout)
	FOF_DURATION.observe(duration_seconds)
