"""
Remote API connectors.
"""

from .pagerduty import PagerDutyClient

__all__ = ["PagerDutyClient"]
