"""sigroute: routing and dispatch core for a Sigfox telemetry stage pipeline.

Each stage runs as an isolated, stateless invocation. Everything a stage
needs to continue the pipeline (remaining route, hop history, device) is
carried inside the message envelope and rebuilt on every hop:

  - Envelope models with camelCase wire format (compatible with the
    existing sigfox-gcloud stages)
  - Dispatcher that consumes the route and republishes to the next channel
  - Stage runner and top-level entry point that never raise to the transport
  - Structured logger with trace ids, null/circular stripping and sink fan-out
"""

__version__ = "0.1.0"
__description__ = "Routing and dispatch core for stateless telemetry pipelines"

from sigroute.core.pipeline import InvocationOutcome, Pipeline, cloud_function
from sigroute.models.envelopes import Envelope, EnvelopeOptions, HopRecord
from sigroute.stages.base import BaseStage, FunctionStage

__all__ = [
    "BaseStage",
    "Envelope",
    "EnvelopeOptions",
    "FunctionStage",
    "HopRecord",
    "InvocationOutcome",
    "Pipeline",
    "cloud_function",
    "__version__",
]
