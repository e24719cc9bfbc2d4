from typing import Annotated
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.database import get_db
from app.core.security import decode_token
from app.models.employee import Employee
from app.models.user import User

security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise credentials_exception
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, KeyError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


async def get_current_manager_or_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if current_user.role not in ("admin", "manager"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions – admin or manager required",
        )
    return current_user


async def get_current_employee(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Employee:
    """Mitarbeiterprofil des eingeloggten Accounts – Identität für die Stempeluhr."""
    result = await db.execute(
        select(Employee).where(
            Employee.user_id == current_user.id,
            Employee.tenant_id == current_user.tenant_id,
            Employee.is_active == True,  # noqa: E712
        )
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No employee profile linked to this account",
        )
    return employee


async def resolve_employee(
    db: AsyncSession,
    current_user: User,
    employee_id: uuid.UUID | None,
) -> Employee:
    """
    Ohne employee_id: eigenes Profil.
    Mit employee_id: nur Manager/Admin desselben Tenants, oder das eigene Profil.
    """
    if employee_id is None:
        return await get_current_employee(current_user, db)

    result = await db.execute(
        select(Employee).where(
            Employee.id == employee_id,
            Employee.tenant_id == current_user.tenant_id,
        )
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    if current_user.role not in ("admin", "manager") and employee.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied – not your time records")
    return employee


CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentEmployee = Annotated[Employee, Depends(get_current_employee)]
ManagerOrAdmin = Annotated[User, Depends(get_current_manager_or_admin)]
DB = Annotated[AsyncSession, Depends(get_db)]
