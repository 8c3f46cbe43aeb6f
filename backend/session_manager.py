import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from motionlab.tracking.track import Project


@dataclass
class Session:
    id: str
    project: Project = field(default_factory=Project)
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionManager:
    """In-memory projects keyed by session id."""

    def __init__(self):
        self.sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(self) -> Session:
        with self._lock:
            sid = uuid.uuid4().hex[:12]
            session = Session(id=sid)
            self.sessions[sid] = session
            return session

    def get(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self.sessions.pop(session_id, None) is not None

    def update_calibration(self, session_id: str, fn) -> Optional[Session]:
        """Replace the calibration with ``fn(current)``; exceptions leave it unchanged."""
        session = self.sessions.get(session_id)
        if not session:
            return None
        with session.lock:
            session.project.calibration = fn(session.project.calibration)
        return session
