from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import get_db, require_admin
from app.schemas.auths.admin_schema import ApproveUserResponse, PendingUsersResponse, StatsResponse
from app.services.admin.approval_service import approve_user, get_stats, list_pending_users

router = APIRouter(dependencies=[Depends(require_admin)])


"""
Cuentas pendientes, cuentas aprobadas y notificaciones sin leer.
"""
@router.get("/pending-users", response_model=PendingUsersResponse)
async def pending_users_route(db: AsyncSession = Depends(get_db)):
    data = await list_pending_users(db)
    return {"success": True, **data}


"""
Aprueba una cuenta verificada. 400 si no está verificada o ya estaba aprobada.
"""
@router.post("/approve-user/{user_id}", response_model=ApproveUserResponse)
async def approve_user_route(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await approve_user(db, user_id)
    return {"success": True, "message": "User approved", "user": user}


@router.get("/stats", response_model=StatsResponse)
async def stats_route(db: AsyncSession = Depends(get_db)):
    stats = await get_stats(db)
    return {"success": True, **stats}
