import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, CurrentEmployee, ManagerOrAdmin
from app.models.employee import Employee
from app.models.user import User
from app.schemas.employee import EmployeeCreate, EmployeeOut

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/me", response_model=EmployeeOut)
async def get_own_employee(employee: CurrentEmployee):
    return employee


@router.get("", response_model=list[EmployeeOut])
async def list_employees(current_user: ManagerOrAdmin, db: DB, active_only: bool = True):
    query = select(Employee).where(Employee.tenant_id == current_user.tenant_id)
    if active_only:
        query = query.where(Employee.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Employee.last_name))
    return result.scalars().all()


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: uuid.UUID, current_user: CurrentUser, db: DB):
    result = await db.execute(
        select(Employee).where(
            Employee.id == employee_id,
            Employee.tenant_id == current_user.tenant_id,
        )
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    if current_user.role not in ("admin", "manager") and employee.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return employee


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate, current_user: ManagerOrAdmin, db: DB):
    if payload.user_id:
        user_result = await db.execute(
            select(User).where(
                User.id == payload.user_id,
                User.tenant_id == current_user.tenant_id,
            )
        )
        if not user_result.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="User not found in this organization")

    employee = Employee(
        tenant_id=current_user.tenant_id,
        **payload.model_dump(),
    )
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    return employee
