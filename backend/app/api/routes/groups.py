from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.group import Group, UserGroup
from app.models.user import User, UserRole
from app.schemas.group import GroupCreate, GroupOut, GroupUpdate, MembershipOut, MembershipSubgroupsUpdate
from app.services.visibility import load_membership

router = APIRouter()


def _get_group_or_404(db: Session, group_id: str) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group


@router.get("/groups", response_model=list[GroupOut])
def list_groups(
    include_inactive: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[GroupOut]:
    query = select(Group).order_by(Group.name.asc())
    if not (include_inactive and current_user.role == UserRole.admin):
        query = query.where(Group.is_active.is_(True))
    return list(db.execute(query).scalars())


@router.post("/groups", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> GroupOut:
    existing = db.execute(select(Group).where(Group.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group name already exists")
    group = Group(**payload.model_dump())
    db.add(group)
    db.commit()
    db.refresh(group)
    return group


@router.put("/groups/{group_id}", response_model=GroupOut)
def update_group(
    group_id: str,
    payload: GroupUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> GroupOut:
    group = _get_group_or_404(db, group_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        existing = db.execute(
            select(Group).where(Group.name == data["name"], Group.id != group_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Group name already exists")

    for key, value in data.items():
        setattr(group, key, value)
    db.commit()
    db.refresh(group)
    return group


@router.delete("/groups/{group_id}")
def deactivate_group(
    group_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    # Schedules and memberships keep pointing at the group, so it is only deactivated.
    group = _get_group_or_404(db, group_id)
    group.is_active = False
    db.commit()
    return {"success": True}


@router.get("/groups/{group_id}/students/{student_id}/subgroups", response_model=MembershipOut)
def read_student_subgroups(
    group_id: str,
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MembershipOut:
    if current_user.role == UserRole.student and current_user.id != student_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    membership = load_membership(db, user_id=student_id, group_id=group_id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")
    return membership


@router.put("/groups/{group_id}/students/{student_id}/subgroups", response_model=MembershipOut)
def update_student_subgroups(
    group_id: str,
    student_id: str,
    payload: MembershipSubgroupsUpdate,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.mentor)),
    db: Session = Depends(get_db),
) -> MembershipOut:
    _get_group_or_404(db, group_id)
    student = db.get(User, student_id)
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    if student.group_id != group_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student does not belong to this group")

    membership = load_membership(db, user_id=student_id, group_id=group_id)
    if membership is None:
        membership = UserGroup(user_id=student_id, group_id=group_id)
        db.add(membership)
    # Dimensions left out of the payload are cleared.
    membership.set_subgroup_numbers(payload.as_dimensions())
    db.commit()
    db.refresh(membership)
    return membership
