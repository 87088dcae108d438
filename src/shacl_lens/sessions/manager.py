from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from shacl_lens.locations import DocumentLocation
from shacl_lens.shacl.report import ValidationReport

from .models import ValidationSession

logger = logging.getLogger("shacl_lens.sessions.manager")

SessionListener = Callable[[ValidationSession | None], None]


class SessionStore(Protocol):
    def load(self) -> list[dict]: ...

    def save(self, records: list[dict]) -> None: ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionManager:
    """Registry of validation sessions keyed by id.

    Listeners receive the changed session, or ``None`` when the whole
    collection should be refreshed (load, delete).
    """

    def __init__(
        self,
        store: SessionStore,
        persist_reports: bool = False,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.persist_reports = persist_reports
        self.clock = clock
        self._sessions: dict[str, ValidationSession] = {}
        self._listeners: list[SessionListener] = []
        self.load_error: str | None = None
        self.load()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, session: ValidationSession | None) -> None:
        for listener in list(self._listeners):
            listener(session)

    def load(self) -> None:
        """Reload sessions from the store.

        An unreadable store leaves the registry empty and sets ``load_error``.
        Saving is skipped until a later load succeeds.
        """
        self._sessions.clear()
        try:
            records = self.store.load()
        except (OSError, ValueError) as exc:
            self.load_error = str(exc)
            logger.warning("Session store unavailable: %s", exc)
            self._notify(None)
            return
        self.load_error = None
        for record in records:
            try:
                session = ValidationSession.from_dict(record)
            except ValueError as exc:
                logger.warning("Skipping stored session: %s", exc)
                continue
            self._sessions[session.id] = session
        logger.debug("Loaded %s session(s)", len(self._sessions))
        self._notify(None)

    def save(self) -> None:
        if self.load_error is not None:
            logger.warning("Not saving sessions over an unreadable store: %s", self.load_error)
            return
        self.store.save(
            [
                session.to_dict(include_report=self.persist_reports)
                for session in self._sessions.values()
            ]
        )

    def _new_id(self, created_at: int) -> str:
        candidate = created_at
        while str(candidate) in self._sessions:
            candidate += 1
        return str(candidate)

    def create(
        self,
        data_graph: DocumentLocation,
        shapes_graph: DocumentLocation,
        name: str | None = None,
    ) -> ValidationSession:
        created_at = self.clock()
        session = ValidationSession(
            id=self._new_id(created_at),
            name=name
            or f"Session {len(self._sessions) + 1} ({data_graph.name} vs {shapes_graph.name})",
            data_graph=data_graph,
            shapes_graph=shapes_graph,
            created_at=created_at,
        )
        self._sessions[session.id] = session
        logger.debug("Created session %s (%s)", session.id, session.name)
        self.save()
        self._notify(session)
        return session

    def get(self, session_id: str) -> ValidationSession | None:
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> ValidationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")
        return session

    def all(self) -> list[ValidationSession]:
        """Sessions, newest first."""
        return sorted(
            self._sessions.values(),
            key=lambda session: (session.created_at, session.id),
            reverse=True,
        )

    def delete(self, session_id: str) -> bool:
        if self._sessions.pop(session_id, None) is None:
            return False
        logger.debug("Deleted session %s", session_id)
        self.save()
        self._notify(None)
        return True

    def _update(self, session: ValidationSession) -> ValidationSession:
        self.save()
        self._notify(session)
        return session

    def rename(self, session_id: str, name: str) -> ValidationSession:
        if not name.strip():
            raise ValueError("Session name must not be empty")
        session = self.require(session_id)
        session.name = name
        return self._update(session)

    def replace_data_graph(
        self, session_id: str, location: DocumentLocation
    ) -> ValidationSession:
        session = self.require(session_id)
        session.data_graph = location
        session.last_report = None
        return self._update(session)

    def replace_shapes_graph(
        self, session_id: str, location: DocumentLocation
    ) -> ValidationSession:
        session = self.require(session_id)
        session.shapes_graph = location
        session.last_report = None
        return self._update(session)

    def update_report(self, session_id: str, report: ValidationReport) -> ValidationSession:
        session = self.require(session_id)
        session.last_report = report
        if self.persist_reports:
            self.save()
        self._notify(session)
        return session
