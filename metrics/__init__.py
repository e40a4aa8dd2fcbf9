"""SignalFx batching and emission core"""
from .models import Metric, MetricType
from .encoder import encode, SOURCE
from .self_metrics import SelfMetricsTracker

__all__ = [
    'Metric',
    'MetricType',
    'encode',
    'SOURCE',
    'SelfMetricsTracker'
]
