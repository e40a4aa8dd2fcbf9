"""Convert internal metrics into SignalFx datapoints"""
from typing import Dict, Optional
from .models import Metric, MetricType
from . import signalfx_pb


SOURCE = "fullerite"

_METRIC_TYPES = {
    MetricType.GAUGE: signalfx_pb.GAUGE,
    MetricType.COUNTER: signalfx_pb.COUNTER,
    MetricType.CUMULATIVE_COUNTER: signalfx_pb.CUMULATIVE_COUNTER,
}


def encode(metric: Metric, prefix: str = "", default_dimensions: Optional[Dict[str, str]] = None):
    """Build a DataPoint for one metric.

    Unknown metric types leave ``metricType`` unset so the backend applies its
    default interpretation.
    """
    datapoint = signalfx_pb.DataPoint(
        metric=prefix + metric.name,
        source=SOURCE,
        value=signalfx_pb.Datum(doubleValue=float(metric.value)),
    )

    metric_type = _METRIC_TYPES.get(metric.metric_type)
    if metric_type is not None:
        datapoint.metricType = metric_type

    for key, value in metric.get_dimensions(default_dimensions).items():
        datapoint.dimensions.add(key=key, value=str(value))

    return datapoint
