"""SignalFx protobuf wire schema.

``signalfx_metrics.proto`` next to this module is the schema of record. It is
mirrored here as a ``FileDescriptorProto`` and loaded into a private descriptor
pool, so the message classes behave like ``protoc`` output without a protoc
step at build time. tests/test_signalfx_pb.py keeps the two in sync.
"""
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.internal import enum_type_wrapper


PACKAGE = "com.signalfx.metrics.protobuf"

_Field = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name: str, number: int, field_type: int,
               type_name: str = "", repeated: bool = False) -> None:
    field = message.field.add(
        name=name,
        number=number,
        type=field_type,
        label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
    )
    # Setting type_name at all, even to "", is only valid for message and enum fields
    if type_name:
        field.type_name = f".{PACKAGE}.{type_name}"


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    """Describe signalfx_metrics.proto"""
    proto = descriptor_pb2.FileDescriptorProto(
        name="signalfx_metrics.proto",
        package=PACKAGE,
        syntax="proto2",
    )

    datum = proto.message_type.add(name="Datum")
    _add_field(datum, "strValue", 1, _Field.TYPE_STRING)
    _add_field(datum, "doubleValue", 2, _Field.TYPE_DOUBLE)
    _add_field(datum, "intValue", 3, _Field.TYPE_INT64)

    dimension = proto.message_type.add(name="Dimension")
    _add_field(dimension, "key", 1, _Field.TYPE_STRING)
    _add_field(dimension, "value", 2, _Field.TYPE_STRING)

    metric_type = proto.enum_type.add(name="MetricType")
    for name, number in (("GAUGE", 0), ("COUNTER", 1), ("ENUM", 2), ("CUMULATIVE_COUNTER", 3)):
        metric_type.value.add(name=name, number=number)

    datapoint = proto.message_type.add(name="DataPoint")
    _add_field(datapoint, "source", 1, _Field.TYPE_STRING)
    _add_field(datapoint, "metric", 2, _Field.TYPE_STRING)
    _add_field(datapoint, "timestamp", 3, _Field.TYPE_INT64)
    _add_field(datapoint, "value", 4, _Field.TYPE_MESSAGE, "Datum")
    _add_field(datapoint, "metricType", 5, _Field.TYPE_ENUM, "MetricType")
    _add_field(datapoint, "dimensions", 6, _Field.TYPE_MESSAGE, "Dimension", repeated=True)

    upload = proto.message_type.add(name="DataPointUploadMessage")
    _add_field(upload, "datapoints", 1, _Field.TYPE_MESSAGE, "DataPoint", repeated=True)

    return proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))


Datum = _message_class("Datum")
Dimension = _message_class("Dimension")
DataPoint = _message_class("DataPoint")
DataPointUploadMessage = _message_class("DataPointUploadMessage")
MetricType = enum_type_wrapper.EnumTypeWrapper(_pool.FindEnumTypeByName(f"{PACKAGE}.MetricType"))

GAUGE = MetricType.Value("GAUGE")
COUNTER = MetricType.Value("COUNTER")
CUMULATIVE_COUNTER = MetricType.Value("CUMULATIVE_COUNTER")
