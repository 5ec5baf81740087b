"""Running protoc to produce generated Go code from proto definitions."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

from truss.svcparse.scanner import Source

_GOGO_TYPES = "github.com/gogo/protobuf/types"
_WELL_KNOWN = ("any", "duration", "struct", "timestamp", "wrappers")


@dataclass
class Config:
    """Inputs to a service generation run."""

    go_path: list[str] = field(default_factory=list)
    # Go package and directory where the generated .pb.go files are written
    pb_package: str = ""
    pb_path: str = ""
    # Go package and directory where the service code is written
    service_package: str = ""
    service_path: str = ""
    # Paths of the .proto files the service is generated from
    def_paths: list[str] = field(default_factory=list)
    # Files of a previously generated service, if any
    prev_gen: Optional[Mapping[str, Source]] = None


class ProtocError(RuntimeError):
    """Raised when protoc or one of its plugins cannot be run or fails."""

    def __init__(self, message: str, output: str = "", command: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.output = output
        self.command = list(command)


def _gogofaster_plugin(out_dir: str) -> str:
    mappings = ",".join(
        f"Mgoogle/protobuf/{name}.proto={_GOGO_TYPES}" for name in _WELL_KNOWN
    )
    return f"--gogofaster_out={mappings},paths=source_relative,plugins=grpc:{out_dir}"


def generate_pb_dot_go(proto_paths: Sequence[str], gopath: Sequence[str], out_dir: str) -> None:
    """Generate .pb.go files for proto_paths and write them to out_dir."""
    if shutil.which("protoc-gen-gogo") is None:
        raise ProtocError("cannot find protoc-gen-gogo in PATH")
    try:
        run_protoc(proto_paths, gopath, _gogofaster_plugin(out_dir))
    except ProtocError as err:
        raise ProtocError(
            f"cannot exec protoc with protoc-gen-gogo: {err}", err.output, err.command
        ) from err


def run_protoc(proto_paths: Sequence[str], gopath: Sequence[str], plugin: str) -> None:
    """Run protoc on proto_paths with the given plugin argument."""
    if not proto_paths:
        raise ValueError("at least one proto file is required")
    command = ["protoc", "--proto_path=" + os.path.dirname(proto_paths[0])]
    command.extend("-I" + os.path.join(gp, "src") for gp in gopath)
    command.append(plugin)
    command.extend(proto_paths)

    try:
        result = subprocess.run(
            command, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
    except OSError as err:
        raise ProtocError(f"protoc exec failed: {err}", "", command) from err

    if result.returncode != 0:
        output = (result.stdout or b"").decode("utf-8", errors="replace")
        raise ProtocError(
            f"protoc exec failed.\nprotoc output:\n\n{output}\n"
            f"protoc arguments:\n\n{command}\n\n",
            output,
            command,
        )