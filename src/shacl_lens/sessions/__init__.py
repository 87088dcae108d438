from shacl_lens.sessions.manager import SessionManager
from shacl_lens.sessions.models import ValidationSession
from shacl_lens.sessions.store import JsonSessionStore, MemorySessionStore, write_json

__all__ = [
    "JsonSessionStore",
    "MemorySessionStore",
    "SessionManager",
    "ValidationSession",
    "write_json",
]
