"""Metric models handed to the SignalFx emitter"""
from dataclasses import dataclass, field
from typing import Dict, Optional
from enum import Enum

class MetricType(Enum):
    """Metric types understood by the emitter"""
    GAUGE = "gauge"
    COUNTER = "counter"
    CUMULATIVE_COUNTER = "cumulative_counter"

@dataclass
class Metric:
    """Single metric data point produced elsewhere in the agent"""
    name: str
    value: float = 0.0
    metric_type: MetricType = MetricType.GAUGE
    dimensions: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Ensure dimensions is never None
        if self.dimensions is None:
            self.dimensions = {}

    def add_dimension(self, key: str, value: str) -> None:
        """Add or overwrite a dimension"""
        self.dimensions[key] = value

    def get_dimensions(self, defaults: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Merge default dimensions with this metric's own, the metric's winning"""
        merged = dict(defaults or {})
        merged.update(self.dimensions)
        return merged
