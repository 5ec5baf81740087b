"""Building a service definition from the text of a proto file."""

from __future__ import annotations

import tempfile
from collections.abc import Sequence
from pathlib import Path

from truss.protoc import generate_pb_dot_go
from truss.svcdef.builder import new
from truss.svcdef.model import Svcdef


def new_from_string(definition: str, gopath: Sequence[str]) -> Svcdef:
    """Create a Svcdef from the text of a valid proto file.

    protoc is run on the definition to produce the generated Go code.
    """
    with tempfile.TemporaryDirectory(prefix="trusssvcdef") as proto_dir:
        def_path = Path(proto_dir) / "definition.proto"
        def_path.write_text(definition, encoding="utf-8")

        generate_pb_dot_go([str(def_path)], gopath, proto_dir)

        go_path = Path(proto_dir) / "definition.pb.go"
        try:
            pbgo = go_path.read_text(encoding="utf-8")
        except OSError as err:
            raise OSError(f'cannot read pb.go file "{go_path}": {err}') from err

    try:
        return new(
            {"/tmp/doesntexist.pb.go": pbgo},
            {"/tmp/doesntexist.proto": definition},
        )
    except ValueError as err:
        raise ValueError(
            f"cannot create new svcdef from pb.go and definition: {err}"
        ) from err