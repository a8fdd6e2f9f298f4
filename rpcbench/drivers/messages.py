"""Protobuf message classes for the echo service.

The schema mirrors ``demo.proto`` of the echo service and is registered in a
private descriptor pool at import time, so no generated ``_pb2`` modules are
needed:

    message DataRequest {
      string id = 1;
      int64 timestamp = 2;
      bytes payload = 3;
      map<string, string> metadata = 4;
    }

    message DataResponse {
      string id = 1;
      int64 timestamp = 2;
      bytes payload = 3;
      int32 status_code = 4;
      string message = 5;
      map<string, string> metadata = 6;
      int64 processing_time_ns = 7;
    }

    service PerformanceTestService {
      rpc ProcessData(DataRequest) returns (DataResponse);
      rpc ProcessDataStream(stream DataRequest) returns (stream DataResponse);
    }
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "demo"
SERVICE_NAME = f"{PACKAGE}.PerformanceTestService"
PROCESS_DATA_METHOD = f"/{SERVICE_NAME}/ProcessData"
PROCESS_DATA_STREAM_METHOD = f"/{SERVICE_NAME}/ProcessDataStream"

_F = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name, number, field_type, label=_F.LABEL_OPTIONAL, type_name=None):
    field = message.field.add(name=name, number=number, type=field_type, label=label)
    if type_name:
        field.type_name = type_name
    return field


def _add_string_map(message, name, number):
    entry_name = "".join(part.capitalize() for part in name.split("_")) + "Entry"
    entry = message.nested_type.add(name=entry_name)
    entry.options.map_entry = True
    _add_field(entry, "key", 1, _F.TYPE_STRING)
    _add_field(entry, "value", 2, _F.TYPE_STRING)
    _add_field(
        message,
        name,
        number,
        _F.TYPE_MESSAGE,
        label=_F.LABEL_REPEATED,
        type_name=f".{PACKAGE}.{message.name}.{entry_name}",
    )


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="rpcbench/demo.proto", package=PACKAGE, syntax="proto3"
    )

    request = file_proto.message_type.add(name="DataRequest")
    _add_field(request, "id", 1, _F.TYPE_STRING)
    _add_field(request, "timestamp", 2, _F.TYPE_INT64)
    _add_field(request, "payload", 3, _F.TYPE_BYTES)
    _add_string_map(request, "metadata", 4)

    response = file_proto.message_type.add(name="DataResponse")
    _add_field(response, "id", 1, _F.TYPE_STRING)
    _add_field(response, "timestamp", 2, _F.TYPE_INT64)
    _add_field(response, "payload", 3, _F.TYPE_BYTES)
    _add_field(response, "status_code", 4, _F.TYPE_INT32)
    _add_field(response, "message", 5, _F.TYPE_STRING)
    _add_string_map(response, "metadata", 6)
    _add_field(response, "processing_time_ns", 7, _F.TYPE_INT64)

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())

DataRequest = message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.DataRequest"))
DataResponse = message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.DataResponse"))


def serialize(message) -> bytes:
    return message.SerializeToString()


def parse_request(data: bytes):
    return DataRequest.FromString(data)


def parse_response(data: bytes):
    return DataResponse.FromString(data)
