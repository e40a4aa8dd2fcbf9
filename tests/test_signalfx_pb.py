"""Tests for the SignalFx wire schema"""
import re
from pathlib import Path
import pytest
from google.protobuf.descriptor import FieldDescriptor

import metrics
from metrics import signalfx_pb


PROTO_FILE = Path(metrics.__file__).parent / "signalfx_metrics.proto"

_SCALAR_TYPES = {
    "string": FieldDescriptor.TYPE_STRING,
    "double": FieldDescriptor.TYPE_DOUBLE,
    "int64": FieldDescriptor.TYPE_INT64,
}


def parse_proto(text):
    """Map message name to [(label, type, name, number)] from the .proto source"""
    messages = {}
    for name, body in re.findall(r"message\s+(\w+)\s*\{(.*?)\}", text, re.S):
        messages[name] = [
            (label, field_type, field_name, int(number))
            for label, field_type, field_name, number in re.findall(
                r"(optional|repeated)\s+(\w+)\s+(\w+)\s*=\s*(\d+);", body
            )
        ]
    return messages


def type_of(field):
    if field.message_type is not None:
        return field.message_type.name
    if field.enum_type is not None:
        return field.enum_type.name
    return next(name for name, t in _SCALAR_TYPES.items() if t == field.type)


class TestSignalFxSchema:
    """Test the schema loads under the default protobuf backend and matches the .proto"""

    def test_module_loads_message_classes(self):
        """Test every message class is constructible"""
        datapoint = signalfx_pb.DataPoint(
            metric="m",
            value=signalfx_pb.Datum(doubleValue=1.0),
            metricType=signalfx_pb.COUNTER,
        )
        datapoint.dimensions.add(key="host", value="a")

        payload = signalfx_pb.DataPointUploadMessage()
        payload.datapoints.append(datapoint)

        assert payload.SerializeToString()

    def test_scalar_fields_have_no_type_name(self):
        """Test only message and enum fields reference another type"""
        for field in signalfx_pb.Datum.DESCRIPTOR.fields:
            assert field.message_type is None
            assert field.enum_type is None

    @pytest.mark.parametrize("message_name", [
        "Datum",
        "Dimension",
        "DataPoint",
        "DataPointUploadMessage",
    ])
    def test_message_matches_proto_file(self, message_name):
        """Test field names, numbers, types and cardinality match the .proto"""
        expected = parse_proto(PROTO_FILE.read_text())[message_name]
        message_class = getattr(signalfx_pb, message_name)
        instance = message_class()

        actual = []
        for field in message_class.DESCRIPTOR.fields:
            label = "repeated" if hasattr(getattr(instance, field.name), "extend") else "optional"
            actual.append((label, type_of(field), field.name, field.number))

        assert sorted(actual, key=lambda f: f[3]) == expected

    def test_enum_matches_proto_file(self):
        """Test the metric type enum values"""
        body = re.search(r"enum\s+MetricType\s*\{(.*?)\}", PROTO_FILE.read_text(), re.S).group(1)
        expected = {name: int(number) for name, number in re.findall(r"(\w+)\s*=\s*(\d+);", body)}

        assert {name: signalfx_pb.MetricType.Value(name) for name in expected} == expected
        assert signalfx_pb.GAUGE == 0
        assert signalfx_pb.CUMULATIVE_COUNTER == 3
