"""
Prometheus metrics for the visit pipeline
"""

from prometheus_client import Counter, Histogram

request_count = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
request_duration = Histogram('http_request_duration_seconds', 'HTTP request duration')

visit_processing_total = Counter(
    'visit_processing_total', 'Finished visit processing runs', ['status']
)
visit_processing_duration = Histogram(
    'visit_processing_duration_seconds', 'Visit processing duration'
)
transcription_attempts_total = Counter(
    'transcription_attempts_total', 'Transcription attempts per model', ['model', 'outcome']
)
interaction_warnings_total = Counter(
    'interaction_warnings_total', 'Medication interaction warnings emitted', ['severity', 'kind']
)
