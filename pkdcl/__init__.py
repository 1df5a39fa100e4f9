"""PKWare DCL implode/explode compression and decompression."""

__version__ = "0.1.0"

__all__ = ["types", "tables", "explode_state", "explode", "implode_state", "pattern", "implode"]