"""Message classes for ``flights.proto``.

The descriptor is assembled here instead of by protoc; keep it in step with
``flights.proto`` next to this file.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

_PACKAGE = "clovis.flights"
_F = descriptor_pb2.FieldDescriptorProto


def _scalar(name: str, number: int, kind: int) -> descriptor_pb2.FieldDescriptorProto:
    return _F(name=name, number=number, type=kind, label=_F.LABEL_OPTIONAL)


def _message_field(
    name: str, number: int, message: str, *, repeated: bool = False
) -> descriptor_pb2.FieldDescriptorProto:
    return _F(
        name=name,
        number=number,
        type=_F.TYPE_MESSAGE,
        type_name=f".{_PACKAGE}.{message}",
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )


def _file() -> descriptor_pb2.FileDescriptorProto:
    messages = {
        "Location": [
            _scalar("kind", 1, _F.TYPE_INT32),
            _scalar("code", 2, _F.TYPE_STRING),
        ],
        "Selection": [
            _scalar("origin", 1, _F.TYPE_STRING),
            _scalar("date", 2, _F.TYPE_STRING),
            _scalar("destination", 3, _F.TYPE_STRING),
            _scalar("airline", 5, _F.TYPE_STRING),
            _scalar("flight_number", 6, _F.TYPE_STRING),
        ],
        "Leg": [
            _scalar("date", 2, _F.TYPE_STRING),
            _message_field("selection", 4, "Selection"),
            _message_field("origin", 13, "Location"),
            _message_field("destination", 14, "Location"),
        ],
        "Mask": [_scalar("value", 1, _F.TYPE_UINT64)],
        "Tfs": [
            _scalar("header", 1, _F.TYPE_INT32),
            _scalar("version", 2, _F.TYPE_INT32),
            _message_field("legs", 3, "Leg", repeated=True),
            _scalar("flag_8", 8, _F.TYPE_INT32),
            _scalar("flag_9", 9, _F.TYPE_INT32),
            _scalar("flag_14", 14, _F.TYPE_INT32),
            _message_field("mask", 16, "Mask"),
            _scalar("trip", 19, _F.TYPE_INT32),
        ],
        "TfuState": [_scalar("value", 1, _F.TYPE_INT32)],
        "TfuExtra": [],
        "Tfu": [
            _scalar("token", 1, _F.TYPE_STRING),
            _message_field("state", 2, "TfuState"),
            _message_field("extra", 4, "TfuExtra"),
        ],
    }
    return descriptor_pb2.FileDescriptorProto(
        name="clovis/flights.proto",
        package=_PACKAGE,
        syntax="proto2",
        message_type=[
            descriptor_pb2.DescriptorProto(name=name, field=fields)
            for name, fields in messages.items()
        ],
    )


_POOL = descriptor_pool.DescriptorPool()
DESCRIPTOR = _POOL.AddSerializedFile(_file().SerializeToString())


def _message_class(name: str) -> type[Message]:
    return message_factory.GetMessageClass(DESCRIPTOR.message_types_by_name[name])


Location = _message_class("Location")
Selection = _message_class("Selection")
Leg = _message_class("Leg")
Mask = _message_class("Mask")
Tfs = _message_class("Tfs")
TfuState = _message_class("TfuState")
TfuExtra = _message_class("TfuExtra")
Tfu = _message_class("Tfu")
