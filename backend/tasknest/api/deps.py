from fastapi import Depends, Header, HTTPException, Request
from sqlmodel import Session

from ..db.crud import TaskStore
from ..db.session import get_session
from ..services.completion import SessionContext


def get_owner_id(x_user_id: str = Header(default="")) -> str:
    # Identity comes from the auth provider in front of the API; we only read the forwarded id.
    owner_id = x_user_id.strip()
    if not owner_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return owner_id

def get_store(session: Session = Depends(get_session)) -> TaskStore:
    return TaskStore(session)

def get_context(request: Request, owner_id: str = Depends(get_owner_id)) -> SessionContext:
    return request.app.state.sessions.get(owner_id)
