"""Prometheus metrics for API service.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Media upload metrics
- Email and payment link outcomes by vendor

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.openmetrics.exposition import CONTENT_TYPE_LATEST

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Media metrics
media_uploads_total = Counter(
    "media_uploads_total",
    "Total media uploads",
    ["status"],  # success, rejected, failed
)

media_upload_size_bytes = Histogram(
    "media_upload_size_bytes",
    "Accepted media upload size in bytes",
    buckets=(102400, 1048576, 10485760, 52428800, 104857600),  # 100KB to 100MB
)

# Vendor adapters
emails_sent_total = Counter(
    "emails_sent_total",
    "Total email send attempts",
    ["provider", "status"],  # status: success, failed
)

payment_links_created_total = Counter(
    "payment_links_created_total",
    "Total Square payment link requests",
    ["status"],  # success, failed
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
