from prometheus_client import Counter, Histogram, Gauge, generate_latest
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()

# Define metrics
request_count = Counter(
	'http_requests_total',
	'Total HTTP requests',
	['method', 'endpoint', 'status']
)

request_duration = Histogram(
	'http_request_duration_seconds',
	'HTTP request duration',
	['method', 'endpoint'],
	buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

active_requests = Gauge(
	'http_requests_active',
	'Number of active HTTP requests'
)

sync_operations = Counter(
	'sync_operations_total',
	'Per-reading sync attempts by outcome',
	['status']
)

sync_passes = Counter(
	'sync_passes_total',
	'Sync passes by outcome',
	['outcome']
)

sync_pass_duration = Histogram(
	'sync_pass_duration_seconds',
	'Duration of a full sync pass',
	buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)
)

readings_pending = Gauge(
	'readings_pending',
	'Readings waiting for delivery (pending or error)'
)


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics():
	"""Prometheus metrics endpoint"""
	return generate_latest()
