"""
Event record enrichment from scraped page signals.
"""

from .signal_reconciler import SignalReconciler, reconcile
from .provenance import filter_related_events

__all__ = [
    'SignalReconciler',
    'reconcile',
    'filter_related_events'
]
