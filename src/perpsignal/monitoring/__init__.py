from .audit import AuditLogger, write_json_snapshot

__all__ = ["AuditLogger", "write_json_snapshot"]
