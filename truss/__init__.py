"""Read gRPC service definitions and their HTTP annotations."""

__version__ = "0.1.0"