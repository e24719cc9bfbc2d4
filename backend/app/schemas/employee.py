from pydantic import BaseModel, EmailStr
import uuid
from datetime import datetime


class EmployeeOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID | None
    first_name: str
    last_name: str
    email: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EmployeeCreate(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr | None = None
    user_id: uuid.UUID | None = None  # Login-Account verknüpfen
