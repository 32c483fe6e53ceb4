from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import HTTPException, Request

from core.services.mutations import MutationGateway
from core.services.program_state import ProgramEditState
from core.storage import ProgramDataSource


@dataclass
class BuilderSession:
    id: str
    state: ProgramEditState
    gateway: MutationGateway
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BuilderRegistry:
    """In-process holder for open program builder sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, BuilderSession] = {}

    def open(self, state: ProgramEditState) -> BuilderSession:
        session = BuilderSession(id=uuid4().hex, state=state, gateway=MutationGateway(state))
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> BuilderSession | None:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


def get_registry(request: Request) -> BuilderRegistry:
    return request.app.state.registry


def get_data_source(request: Request) -> ProgramDataSource:
    return request.app.state.data_source


def get_session(session_id: str, request: Request) -> BuilderSession:
    session = get_registry(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Builder session not found")
    return session
