# truss

`truss` reads the definition of a gRPC service and turns it into plain Python
objects that a code generator can work from. It takes the information from two
places:

- the `.proto` files, which are scanned for the `service` block and its
  `google.api.http` options (including `additional_bindings`, `custom` verbs
  and the comments attached to each binding);
- the `.pb.go` files that `protoc` produces from those same `.proto` files,
  which give the messages, enums, maps, oneofs and the service's methods.

The result is a `Svcdef`: messages with typed fields, enums, and a service
whose methods each carry their HTTP bindings. Every binding lists one
parameter per field of the request message, together with where that
parameter lives: `"path"`, `"body"` or `"query"`.

## Installing

The package has no runtime dependencies. Generating `.pb.go` files
(`truss.protoc`, `truss.svcdef.fromstring`, `truss.parsesvcname`) requires
`protoc` and `protoc-gen-gogo` to be on your `PATH`; parsing sources you
already have does not.

## Modules

- `truss.svcparse` — scanner (`truss.svcparse.scanner.SvcScanner`), lexer
  (`truss.svcparse.lexer.SvcLexer`) and parser for the `service` section of a
  `.proto` file. `truss.svcparse.parser.parse_service(lex)` returns a
  `Service` with its `Method`s, each with its `HTTPBinding`s and their
  `Field`s. Malformed input raises `ParserError` (a `ValueError`); an rpc body
  holding something other than HTTP options raises `OptionalParseError`; input
  with no service tokens at all raises `EOFError`.
- `truss.svcdef.model` — the service model: `Svcdef`, `Message`, `Enum`,
  `Map`, `Service`, `ServiceMethod`, `Field`, `FieldType`, `HTTPBinding`,
  `HTTPParameter`, and `LocationError`.
- `truss.svcdef.goparse` — `parse_go_file(source)`, a parser for the
  declarations (package clause, type declarations, function signatures) of
  generated Go source. Unparseable input raises `GoSyntaxError`.
- `truss.svcdef.builder` — `new(go_files, proto_files)` builds a `Svcdef`
  from mappings of path to source, where each source may be a string, bytes
  or a readable file object. Types are linked to their messages and enums
  (`resolve_types`), and HTTP bindings are attached from the proto files.
- `truss.svcdef.consolidate` — `consolidate_http`, `get_verb`,
  `param_location` and `get_path_params`, the rules that place each request
  field in the path, body or query of a binding.
- `truss.svcdef.fromstring` — `new_from_string(definition, gopath)` builds a
  `Svcdef` from the text of a single `.proto` file, running `protoc` for you.
- `truss.protoc` — `generate_pb_dot_go(proto_paths, gopath, out_dir)` runs
  `protoc` with the gogofaster plugin, and `run_protoc` runs it with any
  plugin argument; failures raise `ProtocError`, which carries the combined
  output and the command. `Config` holds the inputs of a generation run.
- `truss.parsesvcname` — `from_paths(gopath, proto_def_paths)` and
  `from_readers(gopath, readers)` return the CamelCased name of the service
  defined in the given protobuf files.
- `truss.naming` — `camel_case(name)`, the naming rule used for generated Go
  identifiers (`"foo_bar_test"` becomes `"FooBarTest"`, a leading underscore
  becomes `"X"`).
- `truss.getstarted` — `do(pkg)` writes a starter `.proto` file into the
  current directory and returns `0` on success or `1` if the file already
  exists or cannot be written. `ProtoInfo` derives the file, package and
  service names from the given alias.

Warnings and messages are reported through the standard `logging` module.

## Example

```python
import io

from truss.svcdef.builder import new

go_code = """
package echo

type EchoRequest struct {
	In string
}
type EchoResponse struct {
	Out string
}
type EchoServer interface {
	Echo(context.Context, *EchoRequest) (*EchoResponse, error)
}
"""
proto_code = """
service Echo {
  rpc Echo (EchoRequest) returns (EchoResponse) {
    option (google.api.http) = {
      get: "/echo/{In}"
    };
  }
}
"""

sd = new({"echo.pb.go": io.StringIO(go_code)}, {"echo.proto": proto_code})
binding = sd.service.methods[0].bindings[0]
print(binding.verb, binding.path)                       # get /echo/{In}
print([(p.field.name, p.location) for p in binding.params])  # [('In', 'path')]
```

Creating a starter definition:

```python
from truss.getstarted import do

exit_code = do("echo")   # writes echo.proto with an "Echo" service
```

## What this package does not do

It reads service definitions; it does not generate service code from them,
and it installs no command-line program. The messages printed by
`truss.getstarted.do` mention a `truss` command, which this package does not
provide.