"""
AnalyticsMigrate: Analytics Export Migration Tooling
====================================================

Tools for moving behavioral-analytics event history between projects
without losing or corrupting it. The duplicate reconciler decides, for
every idempotency key that appears more than once in an export, why the
copies differ and how to collapse them.
"""

from ._version import __version__

__author__ = "AnalyticsMigrate Team"
__license__ = "MIT"

__all__ = [
    "__version__",
]
