"""Terminal session API endpoints"""

from typing import List

from fastapi import APIRouter

from ..schema.response import SuccessResponse
from ..schema.workspace import TerminalOut
from .dep import TerminalManagerDep

router = APIRouter(prefix="/terminals", tags=["Terminal"])


@router.get("", response_model=SuccessResponse[List[TerminalOut]])
async def list_terminals(terminal_manager: TerminalManagerDep):
    """List live terminal sessions"""
    return SuccessResponse(data=[
        TerminalOut.from_session(pty_session)
        for pty_session in terminal_manager.sessions()
    ])
