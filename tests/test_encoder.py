"""Tests for datapoint encoding"""
import pytest

from metrics import signalfx_pb
from metrics.encoder import encode, SOURCE
from metrics.models import Metric, MetricType


def dimensions_of(datapoint):
    return [(d.key, d.value) for d in datapoint.dimensions]


class TestEncode:
    """Test conversion of metrics into SignalFx datapoints"""

    def test_name_value_and_source(self):
        """Test prefixing, value and fixed source"""
        datapoint = encode(Metric(name="cpu.usage", value=42), prefix="agent.")

        assert datapoint.metric == "agent.cpu.usage"
        assert datapoint.value.doubleValue == 42.0
        assert datapoint.source == SOURCE == "fullerite"

    def test_no_prefix(self):
        """Test metric name is kept without prefix"""
        assert encode(Metric(name="load")).metric == "load"

    @pytest.mark.parametrize("metric_type,expected", [
        (MetricType.GAUGE, signalfx_pb.GAUGE),
        (MetricType.COUNTER, signalfx_pb.COUNTER),
        (MetricType.CUMULATIVE_COUNTER, signalfx_pb.CUMULATIVE_COUNTER),
    ])
    def test_metric_type_mapping(self, metric_type, expected):
        """Test internal metric types map onto wire types"""
        datapoint = encode(Metric(name="m", value=1, metric_type=metric_type))

        assert datapoint.HasField("metricType")
        assert datapoint.metricType == expected

    def test_unknown_metric_type_left_unset(self):
        """Test unknown types pass through without a wire type"""
        datapoint = encode(Metric(name="m", value=1, metric_type="timer"))

        assert not datapoint.HasField("metricType")
        assert datapoint.metric == "m"

    def test_dimension_merge_metric_wins(self):
        """Test defaults merge with metric dimensions, metric taking precedence"""
        metric = Metric(name="m", dimensions={"host": "web-1", "env": "staging"})

        datapoint = encode(metric, default_dimensions={"env": "prod", "cluster": "c1"})

        assert sorted(dimensions_of(datapoint)) == [
            ("cluster", "c1"),
            ("env", "staging"),
            ("host", "web-1"),
        ]

    def test_dimension_entries_are_independent(self):
        """Test datapoints for the same key keep their own values"""
        first = encode(Metric(name="m", dimensions={"host": "a"}))
        second = encode(Metric(name="m", dimensions={"host": "b"}))

        assert dimensions_of(first) == [("host", "a")]
        assert dimensions_of(second) == [("host", "b")]

    def test_encode_does_not_mutate_metric(self):
        """Test encoding leaves the metric and defaults untouched"""
        defaults = {"env": "prod"}
        metric = Metric(name="m", dimensions={"host": "a"})

        encode(metric, "p.", defaults)

        assert metric.name == "m"
        assert metric.dimensions == {"host": "a"}
        assert defaults == {"env": "prod"}

    def test_upload_message_serializes(self):
        """Test encoded datapoints form a valid upload message"""
        payload = signalfx_pb.DataPointUploadMessage()
        payload.datapoints.extend([encode(Metric(name="a", value=1)), encode(Metric(name="b", value=2))])

        decoded = signalfx_pb.DataPointUploadMessage.FromString(payload.SerializeToString())

        assert [dp.metric for dp in decoded.datapoints] == ["a", "b"]


class TestMetric:
    """Test metric model helpers"""

    def test_none_dimensions_normalized(self):
        assert Metric(name="m", dimensions=None).dimensions == {}

    def test_add_dimension_overwrites(self):
        metric = Metric(name="m")
        metric.add_dimension("host", "a")
        metric.add_dimension("host", "b")

        assert metric.dimensions == {"host": "b"}

    def test_get_dimensions(self):
        metric = Metric(name="m", dimensions={"a": "1"})

        assert metric.get_dimensions({"a": "0", "b": "2"}) == {"a": "1", "b": "2"}
        assert metric.get_dimensions() == {"a": "1"}
