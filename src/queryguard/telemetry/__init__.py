"""Access to the globally configured OpenTelemetry providers.

Only the API package is required. Until an application installs an SDK
provider, tracers and meters handed out here are no-ops.
"""

from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.metrics import Meter
from opentelemetry.trace import Tracer

from queryguard.__version__ import __version__

INSTRUMENTATION_SCOPE = "queryguard"

__all__ = [
    "INSTRUMENTATION_SCOPE",
    "get_tracer",
    "get_meter",
]


def get_tracer(name: str = INSTRUMENTATION_SCOPE, version: Optional[str] = None) -> Tracer:
    return trace.get_tracer(name, version or __version__)


def get_meter(name: str = INSTRUMENTATION_SCOPE, version: Optional[str] = None) -> Meter:
    return metrics.get_meter(name, version or __version__)
