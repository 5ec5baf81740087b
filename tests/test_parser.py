import pytest

from truss.svcparse.lexer import SvcLexer
from truss.svcparse.parser import (
    Field,
    HTTPBinding,
    OptionalParseError,
    ParserError,
    parse_binding_fields,
    parse_http_bindings,
    parse_method,
    parse_service,
)


def parse(text):
    return parse_service(SvcLexer(text))


EXAMPLE_BINDINGS = [
    HTTPBinding(fields=[Field(name="post", kind="post", value="/ExamplePost")]),
    HTTPBinding(
        fields=[
            Field(
                name="get",
                description="// Some example comment\n",
                kind="get",
                value="/ExampleGet",
            ),
            Field(name="body", kind="body", value="*"),
        ]
    ),
]


def test_underscore_ident():
    svc = parse("service Example_Service {}")
    assert svc.name == "Example_Service"
    assert svc.methods == []


THREE_DEEP = """
service Example_Service {
    rpc Example(Empty) returns (Empty) {
        option (google.api.http) = {
            // Some example comment
            get: "/ExampleGet"
            body: "*"

            additional_bindings {
                post: "/ExamplePost"
            }
            // Testing comments
        };
    }
}
"""

TWO_DEEP = """
service Example_Service {
    rpc Example(Empty) returns (Empty) {
        option (google.api.http) = {
            // Some example comment
            get: "/ExampleGet"
            body: "*"

            additional_bindings {
                post: "/ExamplePost"
            }
        };
        // Testing comments
    }
}
"""

ONE_DEEP = """
service Example_Service {
    rpc Example(Empty) returns (Empty) {
        option (google.api.http) = {
            // Some example comment
            get: "/ExampleGet"
            body: "*"

            additional_bindings {
                post: "/ExamplePost"
            }
        };
    }
    // Testing comments
}
"""


@pytest.mark.parametrize("text", [THREE_DEEP, TWO_DEEP, ONE_DEEP])
def test_trailing_comments(text):
    svc = parse(text)
    assert svc.name == "Example_Service"
    assert len(svc.methods) == 1
    meth = svc.methods[0]
    assert meth.name == "Example"
    assert meth.request_type == "Empty"
    assert meth.response_type == "Empty"
    assert len(meth.http_bindings) == 2
    assert meth.http_bindings == EXAMPLE_BINDINGS


def test_multiple_rpc():
    svc = parse(
        """
service Example_Service {
    rpc Example(Empty) returns (Empty) {
        option (google.api.http) = {
            // Some example comment
            get: "/ExampleGet"
            body: "*"

            additional_bindings {
                post: "/ExamplePost"
            }
        };
    }
    rpc SecondExample(Empty) returns (Empty) {
        option (google.api.http) = {
            // Second group of example comments
            get: "/SecondExampleGet"
            body: "*"

            // Second group of additional bindings
            additional_bindings {
                // Second binding, this time for post
                post: "/ExamplePost"
            }
        };
    }
}
"""
    )
    assert svc.name == "Example_Service"
    assert len(svc.methods) == 2
    one, two = svc.methods
    assert one.name == "Example"
    assert two.name == "SecondExample"
    assert one.request_type == "Empty"
    assert one.response_type == "Empty"
    assert one.http_bindings == EXAMPLE_BINDINGS
    assert two.http_bindings == [
        HTTPBinding(
            fields=[
                Field(
                    name="post",
                    description="// Second binding, this time for post\n",
                    kind="post",
                    value="/ExamplePost",
                )
            ]
        ),
        HTTPBinding(
            fields=[
                Field(
                    name="get",
                    description="// Second group of example comments\n",
                    kind="get",
                    value="/SecondExampleGet",
                ),
                Field(name="body", kind="body", value="*"),
            ]
        ),
    ]


def test_multiple_rpc_with_stream():
    svc = parse(
        """
service FlowCombination {
    rpc RpcEmptyStream(EmptyProto) returns (stream EmptyProto) {
        option (google.api.http) = {
            post: "/rpc/empty/stream"
        };
    }
    rpc StreamEmptyRpc(stream EmptyProto) returns (EmptyProto) {
        option (google.api.http) = {
            post: "/stream/empty/rpc"
        };
    }
    rpc StreamEmptyStream(stream EmptyProto) returns (stream EmptyProto) {
        option (google.api.http) = {
            post: "/stream/empty/stream"
        };
    }
}
"""
    )
    assert svc.name == "FlowCombination"
    assert [m.name for m in svc.methods] == [
        "RpcEmptyStream",
        "StreamEmptyRpc",
        "StreamEmptyStream",
    ]
    for meth in svc.methods:
        assert meth.request_type == "EmptyProto"
        assert meth.response_type == "EmptyProto"
    paths = ["/rpc/empty/stream", "/stream/empty/rpc", "/stream/empty/stream"]
    for meth, path in zip(svc.methods, paths):
        assert meth.http_bindings == [
            HTTPBinding(fields=[Field(name="post", kind="post", value=path)])
        ]


def test_odd_comments():
    svc = parse(
        """
service FlowCombination {
    /* lots */
    /* of */
    /* comments */
    rpc RpcEmptyStream(EmptyProto) returns (stream EmptyProto) {
    /* lots */
    /* of */
    /* comments */
        option (google.api.http) = {
            post: "/rpc/empty/stream"
        };
    }
    /* lots */ /* of */ /* comments */
    rpc StreamEmptyRpc(stream EmptyProto) returns (EmptyProto) {
    /* lots */ /* of */ /* comments */
        option (google.api.http) = {
    /* lots */ /* of */ /* comments */
            post: "/stream/empty/rpc"
    /* lots */ /* of */ /* comments */
        };
    /* lots */ /* of */ /* comments */
    }
    rpc StreamEmptyStream(stream EmptyProto) returns (stream EmptyProto) {
        option (google.api.http) = {
            post: "/stream/empty/stream"
    /* lots */ /* of */ /* comments */
        };
    /* lots */ /* of */ /* comments */
    }
    /* lots */ /* of */ /* comments */
}
    """
    )
    assert svc.name == "FlowCombination"
    assert len(svc.methods) == 3


def _lines(*pairs):
    return "\n".join("\t" * depth + text for depth, text in pairs)


CUSTOM_ABOVE_BODY = _lines(
    (0, ""),
    (1, "service ExmplService {"),
    (2, "rpc ExmplMethod (RequestStrct) returns (ResponseStrct) {"),
    (3, "option (google.api.http) = {"),
    (4, "custom {"),
    (5, '// The verb itself goes in the "kind" field'),
    (5, 'kind: "MYVERBHERE"'),
    (5, '// Likewise, path goes in the "path" field. As always, the path'),
    (5, "// may have parameters within it."),
    (5, 'path: "/foo/bar/{SomeFieldName}"'),
    (4, "}"),
    (4, "// This 'body' field is optional"),
    (4, 'body: "*"'),
    (3, "};"),
    (2, "}"),
    (1, "}"),
)

CUSTOM_BELOW_BODY = _lines(
    (0, ""),
    (1, "service ExmplService {"),
    (2, "rpc ExmplMethod (RequestStrct) returns (ResponseStrct) {"),
    (3, "option (google.api.http) = {"),
    (4, "// This 'body' field is optional"),
    (4, 'body: "*"'),
    (4, "custom {"),
    (5, '// The verb itself goes in the "kind" field'),
    (5, 'kind: "MYVERBHERE"'),
    (5, '// Likewise, path goes in the "path" field. As always, the path'),
    (5, "// may have parameters within it."),
    (5, 'path: "/foo/bar/{SomeFieldName}"'),
    (4, "}"),
    (3, "};"),
    (2, "}"),
    (1, "}"),
)


def test_custom_http_pattern_field_order():
    assert parse(CUSTOM_BELOW_BODY) == parse(CUSTOM_ABOVE_BODY)


def test_custom_http_pattern_with_comments():
    svc = parse(
        """
    service ExmplService {
        rpc ExmplMethod (RequestStrct) returns (ResponseStrct) {
            option (google.api.http) = {
                // This 'body' field is optional
                body: "*"
                // Comment directly above a custom declaration
                custom /* does this break? */ { /* how about this? */
                    // I hope this breaks something :)
                    kind: "MYVERBHERE" // may comments go here?
                    // Likewise, we must know if this breaks anything
                    path: "/foo/bar/{SomeFieldName}" /* can comment be here */
                    /* after path declaration */
                }/* immediately following our closing brace for custom */
            };
        }
    }"""
    )
    binding = svc.methods[0].http_bindings[0]
    assert [(f.kind, f.value) for f in binding.fields] == [("body", "*")]
    assert [(f.kind, f.value) for f in binding.custom_http_pattern] == [
        ("kind", "MYVERBHERE"),
        ("path", "/foo/bar/{SomeFieldName}"),
    ]


def test_custom_http_pattern_output_example():
    svc = parse(CUSTOM_ABOVE_BODY)
    expected = [
        HTTPBinding(
            fields=[
                Field(
                    description="// This 'body' field is optional\n",
                    name="body",
                    kind="body",
                    value="*",
                )
            ],
            custom_http_pattern=[
                Field(
                    description='// The verb itself goes in the "kind" field\n',
                    name="kind",
                    kind="kind",
                    value="MYVERBHERE",
                ),
                Field(
                    description=(
                        '// Likewise, path goes in the "path" field. As always, the path\n'
                        "\t\t\t\t\t// may have parameters within it.\n"
                    ),
                    name="path",
                    kind="path",
                    value="/foo/bar/{SomeFieldName}",
                ),
            ],
        )
    ]
    assert svc.methods[0].http_bindings == expected


def test_empty_input_raises_eof():
    with pytest.raises(EOFError):
        parse("message Foo { int64 a = 1; }")


def test_method_without_options_ends_parse():
    svc = parse("service S {\n rpc Sum(Req) returns (Rep) {}\n}")
    assert svc.name == "S"
    assert svc.methods == []


def test_method_with_semicolon_has_no_bindings():
    lex = SvcLexer("service S {\n rpc Sum(Req) returns (Rep);\n}")
    lex.get_token_ignore_whitespace()
    lex.get_token_ignore_whitespace()
    lex.get_token_ignore_whitespace()
    assert parse_method(lex) is None


def test_qualified_request_type_keeps_last_ident():
    svc = parse(
        'service S {\n rpc A(google.protobuf.Struct) returns (pkg.Reply) {\n'
        ' option (google.api.http) = { get: "/a" };\n }\n}'
    )
    meth = svc.methods[0]
    assert meth.request_type == "Struct"
    assert meth.response_type == "Reply"


def test_method_description_from_comment():
    svc = parse(
        'service S {\n // does a thing\n rpc A(B) returns (C) {\n'
        ' option (google.api.http) = { get: "/a" };\n }\n}'
    )
    assert svc.methods[0].description == "// does a thing\n"


def test_escaped_string_value_is_unquoted():
    svc = parse(
        'service S {\n rpc A(B) returns (C) {\n'
        ' option (google.api.http) = { get: "/x\\"y\\n" };\n }\n}'
    )
    assert svc.methods[0].http_bindings[0].fields[0].value == '/x"y\n'


def test_missing_rpc_keyword_raises():
    with pytest.raises(ParserError) as info:
        parse("service S {\n foo A(B) returns (C) {}\n}")
    assert info.value.expected == "identifier 'rpc'"
    assert info.value.found == "foo"
    assert not info.value.optional


def test_missing_returns_raises():
    with pytest.raises(ParserError) as info:
        parse("service S {\n rpc A(B) gives (C) {}\n}")
    assert info.value.expected == "'returns' keyword"


def test_missing_colon_raises():
    with pytest.raises(ParserError) as info:
        parse('service S {\n rpc A(B) returns (C) {\n option (x) = { get "/a" };\n }\n}')
    assert info.value.expected == "symbol ':'"


def test_non_option_body_raises_optional_error():
    with pytest.raises(OptionalParseError) as info:
        parse("service S {\n rpc A(B) returns (C) { foo }\n}")
    assert info.value.optional
    assert info.value.found == "foo"


def test_error_message_format():
    with pytest.raises(ParserError) as info:
        parse("service S {\n foo\n}")
    assert str(info.value) == "parser expected identifier 'rpc' in line '2', instead found 'foo'"


def test_parse_http_bindings_end_of_rpc():
    lex = SvcLexer("service S { }")
    lex.get_token_ignore_whitespace()
    lex.get_token_ignore_whitespace()
    lex.get_token_ignore_whitespace()
    assert parse_http_bindings(lex) is None


def test_parse_binding_fields_stops_at_brace():
    lex = SvcLexer('service S { get: "/a" body: "*" }')
    for _ in range(3):
        lex.get_token_ignore_whitespace()
    fields, custom = parse_binding_fields(lex)
    assert fields == [
        Field(name="get", kind="get", value="/a"),
        Field(name="body", kind="body", value="*"),
    ]
    assert custom == []
    assert lex.get_token_ignore_whitespace()[1] == "}"