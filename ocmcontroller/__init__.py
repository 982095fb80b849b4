"""Component delivery helpers: tar extraction, snapshot archives, version constraints, identities and status conditions."""

__version__ = "0.26.4"

__all__ = ["archive", "identity", "status", "untar", "version", "versioning"]