"""Dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codetrack.auth.dependencies import get_current_user
from codetrack.dashboard.schemas import UserWithStats
from codetrack.dashboard.service import get_dashboard
from codetrack.database import get_session
from codetrack.db.models import User

router = APIRouter(prefix="/api", tags=["Dashboard"])


@router.get("/dashboard", response_model=UserWithStats)
async def dashboard(
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> UserWithStats:
    """The user with every connected platform's stats (briefly cached in Redis)."""
    return await get_dashboard(db, user)
