"""Finding the CamelCased service name of a protobuf definition."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path

from truss.protoc import generate_pb_dot_go
from truss.svcdef.builder import new
from truss.svcparse.scanner import Source, read_source


def _read_files(paths: Iterable[str]) -> dict[str, str]:
    return {path: Path(path).read_text(encoding="utf-8") for path in paths}


def from_paths(gopath: Sequence[str], proto_def_paths: Sequence[str]) -> str:
    """Return the name of the service defined in the given proto files."""
    with tempfile.TemporaryDirectory(prefix="parsesvcname") as out_dir:
        generate_pb_dot_go(proto_def_paths, gopath, out_dir)

        pbgo_paths = [
            os.path.join(out_dir, Path(p).stem + ".pb.go") for p in proto_def_paths
        ]
        pbgo_files = _read_files(pbgo_paths)
    proto_files = _read_files(proto_def_paths)

    try:
        sd = new(pbgo_files, proto_files)
    except ValueError as err:
        raise ValueError(
            "failed to create service definition; did you pass ALL the "
            f"protobuf files to truss?: {err}"
        ) from err

    if sd.service is None:
        raise ValueError("no service defined")
    return sd.service.name


def from_readers(gopath: Sequence[str], readers: Iterable[Source]) -> str:
    """Return the service name from proto definitions given as text or streams."""
    with tempfile.TemporaryDirectory(prefix="parsesvcname-fromreaders") as proto_dir:
        paths = []
        for reader in readers:
            with tempfile.NamedTemporaryFile(
                "w",
                dir=proto_dir,
                prefix="parsesvcname-fromreader",
                suffix=".proto",
                delete=False,
                encoding="utf-8",
            ) as handle:
                handle.write(read_source(reader))
                paths.append(handle.name)
        return from_paths(gopath, paths)