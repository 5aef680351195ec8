"""Ordered, short-circuiting chain of suppression checks."""

import logging
from typing import Callable, List, Optional, Tuple

from ..exceptions import EvaluationError
from .grouping_engine import AlertGroupingEngine
from .models import SuppressionContext, SuppressionResult
from .settings import SuppressionSettings
from .suppression_checks import (
    check_custom_rules,
    check_duplicates,
    check_maintenance_windows,
    check_rate_limit,
    check_severity_threshold,
)

logger = logging.getLogger(__name__)

CHECK_ERRORS = (EvaluationError, TypeError, ValueError, KeyError, AttributeError, ArithmeticError)

Check = Callable[[SuppressionContext], Optional[SuppressionResult]]


class SuppressionPipeline:
    """Runs maintenance, duplicate, rate-limit, grouping, threshold and custom-rule checks in order."""

    def __init__(self, settings: SuppressionSettings, grouping_engine: AlertGroupingEngine):
        """
        Initialize suppression pipeline.

        Args:
            settings: Thresholds shared by the checks
            grouping_engine: Group table consulted and updated by the grouping check
        """
        self.settings = settings
        self.grouping_engine = grouping_engine

    @property
    def checks(self) -> List[Tuple[str, Check]]:
        settings = self.settings
        return [
            ("maintenance_window", check_maintenance_windows),
            ("duplicate", lambda context: check_duplicates(context, settings)),
            ("rate_limit", lambda context: check_rate_limit(context, settings)),
            ("grouping", lambda context: self.grouping_engine.process(context.alert, context.now)),
            ("severity_threshold", lambda context: check_severity_threshold(context, settings)),
            ("custom_rules", check_custom_rules),
        ]

    def run(self, context: SuppressionContext) -> SuppressionResult:
        """
        Apply the checks in order; the first that suppresses wins.

        A check that raises is logged and treated as not suppressing.

        Returns:
            The suppressing result, or a ``no_suppression_applied`` result
        """
        for name, check in self.checks:
            try:
                result = check(context)
            except CHECK_ERRORS as exc:
                logger.error("Suppression check %s failed for alert %s: %s", name, context.alert.id, exc, exc_info=True)
                continue
            if result is not None and result.should_suppress:
                logger.debug("Check %s suppressed alert %s: %s", name, context.alert.id, result.reason.value)
                return result
        return SuppressionResult.allow()


__all__ = ["SuppressionPipeline"]
