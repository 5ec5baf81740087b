import pytest

from truss.svcdef.model import (
    Enum,
    Field,
    FieldType,
    HTTPBinding,
    HTTPParameter,
    LocationError,
    Message,
    Svcdef,
)


def test_location_error_message():
    err = LocationError("bad thing", "/tmp/notreal", "3:1")
    assert str(err) == 'bad thing in file "/tmp/notreal" at line 3:1'
    assert err.location == "3:1"
    with pytest.raises(ValueError):
        raise err


def test_field_type_equality_ignores_resolved_references():
    msg = Message("MsgA")
    resolved = FieldType(name="MsgA", star_expr=True, message=msg)
    assert resolved == FieldType(name="MsgA", star_expr=True)
    assert resolved != FieldType(name="MsgA")


def test_self_referencing_message_compares_and_prints():
    msg = Message("Node")
    msg.fields.append(Field("Next", "next", FieldType("Node", star_expr=True, message=msg)))
    other = Message("Node", [Field("Next", "next", FieldType("Node", star_expr=True))])
    assert msg == other
    assert "Node" in repr(msg)


def test_enums_compare_by_identity():
    first = Enum("EnumType")
    assert first == first
    assert first != Enum("EnumType")


def test_defaults_are_independent():
    a, b = Svcdef(), Svcdef()
    a.messages.append(Message("X"))
    assert b.messages == []
    assert b.service is None


def test_binding_holds_params():
    fld = Field("A", "a", FieldType("int64"))
    binding = HTTPBinding("get", "/sum/{a}", [HTTPParameter(fld, "path")])
    assert binding.params[0].field is fld
    assert binding == HTTPBinding("get", "/sum/{a}", [HTTPParameter(Field("A", "a", FieldType("int64")), "path")])