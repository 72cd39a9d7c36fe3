from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.auths.login_schema import AccountSummary


class AdminNotificationData(BaseModel):
    id: int
    user_id: int
    type: str
    payload: Dict[str, Any]
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingUsersResponse(BaseModel):
    success: bool
    pending: List[AccountSummary]
    approved: List[AccountSummary]
    notifications: List[AdminNotificationData]


class ApproveUserResponse(BaseModel):
    success: bool
    message: str
    user: AccountSummary


class StatsResponse(BaseModel):
    success: bool
    total_projects: int = Field(serialization_alias="totalProjects")
    pending_users: int = Field(serialization_alias="pendingUsers")
    approved_users: int = Field(serialization_alias="approvedUsers")
