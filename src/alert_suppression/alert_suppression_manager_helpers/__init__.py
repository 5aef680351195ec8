"""Helper modules for AlertSuppressionManager."""

from .audit_sink import AuditSink
from .context_builder import ContextBuilder
from .decision_cache import DecisionCache
from .grouping_engine import AlertGroupingEngine
from .housekeeping import HousekeepingLoop
from .state_manager import StateManager
from .suppression_pipeline import SuppressionPipeline
from .suppression_tracker import SuppressionTracker, TrackedDecision

__all__ = [
    "AlertGroupingEngine",
    "AuditSink",
    "ContextBuilder",
    "DecisionCache",
    "HousekeepingLoop",
    "StateManager",
    "SuppressionPipeline",
    "SuppressionTracker",
    "TrackedDecision",
]
