"""Live location sharing for the two family members."""

from family_hub.location.source import (
    ManualPositionSource,
    ObservationError,
    PositionSource,
    SimulatedPositionSource,
    Subscription,
)
from family_hub.location.tracker import (
    DiagnosticSink,
    LocationTracker,
    LoggingDiagnosticSink,
    SubjectTracker,
    TrackerState,
)

__all__ = [
    "DiagnosticSink",
    "LocationTracker",
    "LoggingDiagnosticSink",
    "ManualPositionSource",
    "ObservationError",
    "PositionSource",
    "SimulatedPositionSource",
    "SubjectTracker",
    "Subscription",
    "TrackerState",
]
