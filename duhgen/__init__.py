"""Generate DUH-RPC Go artifacts from OpenAPI specifications."""

__version__ = "0.1.0"
