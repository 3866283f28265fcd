import logging
from prometheus_client import Counter, start_http_server

logger = logging.getLogger(__name__)

POLICY_DENIALS = Counter(
    'policy_denials_total',
    'Operations rejected by a row policy',
    ['entity', 'action'],
)
MEDIA_BYTES_UPLOADED = Counter(
    'media_bytes_uploaded_total',
    'Bytes written to the media bucket',
)


def init_metrics(port: int = 8001):
    """Initialize Prometheus metrics server"""
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except OSError as e:
        logger.warning(f'Prometheus start failed: {e}')
