"""Alert ingestion — envelope unwrapping, format detection and source adapters."""

from alert_dispatcher.ingest.alertmanager import adapt_modern_webhook
from alert_dispatcher.ingest.cloudwatch import adapt_cloud_alarm
from alert_dispatcher.ingest.detector import adapt, decode_payload, detect_source
from alert_dispatcher.ingest.envelope import unwrap_envelope
from alert_dispatcher.ingest.exceptions import (
    AdaptationError,
    IngestError,
    MalformedEnvelopeError,
    UnrecognizedFormatError,
)
from alert_dispatcher.ingest.grafana_legacy import adapt_legacy_webhook

__all__ = [
    "AdaptationError",
    "IngestError",
    "MalformedEnvelopeError",
    "UnrecognizedFormatError",
    "adapt",
    "adapt_cloud_alarm",
    "adapt_legacy_webhook",
    "adapt_modern_webhook",
    "decode_payload",
    "detect_source",
    "unwrap_envelope",
]
