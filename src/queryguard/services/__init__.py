"""Query service implementations.

Production clients for a specific telemetry backend implement the
``queryguard.protocols.QueryService`` protocol outside this package; the
scripted service here backs tests and local development.
"""

from queryguard.services.mock import ScriptedQueryService

__all__ = [
    "ScriptedQueryService",
]
