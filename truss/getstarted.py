"""Writing a starter protobuf definition to the current directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from string import Template

from truss.naming import camel_case

log = logging.getLogger(__name__)

_FALLBACK_NAME = "get_started"

_STARTER_PROTO = Template("""
syntax = "proto3";

package ${package_name};

import "github.com/metaverse/truss/deftree/googlethirdparty/annotations.proto";

service ${service_name} {
  rpc Status(StatusRequest) returns (StatusResponse) {
    option (google.api.http) = {
      get: "/status"
    };
  }
}

enum ServiceStatus {
  FAIL = 0;
  OK = 1;
}

message StatusRequest {
  bool full = 1;
}

message StatusResponse {
  ServiceStatus status = 1;
}
""")

_NEXT_STEP_MSG = Template("""A "starter" protobuf file named '${file_name}' has been created in the
current directory. You can generate a service based on this new protobuf file
at any time using the following command:

    truss ${file_name}

If you want to generate a protofile with a different name, use the
'--getstarted' option with the name of your choice after '--getstarted'. For
example, to generate a 'foo.proto', use the following command:

    truss --getstarted foo
""")

_EXISTING_FILE_MSG = Template("""There's already a "starter" protobuf file named '${file_name}' in the current
directory. If you'd like to generate a service based on this existing protobuf
file, you should instead run the command:

    truss ${file_name}""")

_DOT_PROTO_IN_NAME = Template("""The name you provided has a suffix of '.proto' when it should not. Instead of
'${got}', you should provide '${want}'. Here's an example of the correct
command to enter next time:

	truss --getstarted ${want}

For now this program is continuing as though you used '${want}'.
""")


@dataclass(frozen=True)
class ProtoInfo:
    """Names derived from the alias given for a starter definition."""

    alias: str

    def file_name(self) -> str:
        return self.package_name() + ".proto"

    def package_name(self) -> str:
        return self.alias.replace("-", "").replace(" ", "").lower()

    def service_name(self) -> str:
        return camel_case(self.alias.replace("-", "_").replace(" ", "_"))

    def _fields(self) -> dict[str, str]:
        return {
            "file_name": self.file_name(),
            "package_name": self.package_name(),
            "service_name": self.service_name(),
        }


def remove_dot_proto_suffix(pkg: str) -> str:
    """Return pkg without '.proto', warning if it ended with that suffix."""
    want = pkg.replace(".proto", "")
    if pkg.endswith(".proto"):
        log.warning(_DOT_PROTO_IN_NAME.substitute(got=pkg, want=want))
    return want


def do(pkg: str = "") -> int:
    """Write a starter proto file named after pkg into the current directory.

    Returns 0 on success and 1 if the file exists or cannot be written.
    """
    info = ProtoInfo(remove_dot_proto_suffix(pkg or _FALLBACK_NAME))
    fields = info._fields()
    target = Path(info.file_name())

    if target.exists():
        log.error(_EXISTING_FILE_MSG.substitute(fields))
        return 1
    try:
        with target.open("x", encoding="utf-8") as handle:
            handle.write(_STARTER_PROTO.substitute(fields))
    except FileExistsError:
        log.error(_EXISTING_FILE_MSG.substitute(fields))
        return 1
    except OSError as err:
        log.error('cannot write default contents to "%s": %s', target, err)
        return 1

    log.info(_NEXT_STEP_MSG.substitute(fields))
    return 0