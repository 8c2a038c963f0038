from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.models.group import Group
from app.models.subgroup import Subgroup
from app.models.subject import Subject
from app.models.user import User, UserRole
from app.schemas.subgroup import SubgroupCreate, SubgroupOut, SubgroupUpdate

router = APIRouter()


def _get_subgroup_or_404(db: Session, group_id: str, subgroup_id: str) -> Subgroup:
    subgroup = db.execute(
        select(Subgroup).where(Subgroup.id == subgroup_id, Subgroup.group_id == group_id)
    ).scalar_one_or_none()
    if subgroup is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subgroup not found")
    return subgroup


@router.get("/groups/{group_id}/subgroups", response_model=list[SubgroupOut])
def list_subgroups(
    group_id: str,
    subject_id: str | None = Query(default=None, alias="subjectId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[SubgroupOut]:
    query = select(Subgroup).where(Subgroup.group_id == group_id, Subgroup.is_active.is_(True))
    if subject_id:
        query = query.where(Subgroup.subject_id == subject_id)
    # Group-wide subgroups (NULL subject) sort first.
    query = query.order_by(Subgroup.subject_id.is_not(None), Subgroup.subject_id.asc(), Subgroup.number.asc())
    return list(db.execute(query).scalars())


@router.post("/groups/{group_id}/subgroups", response_model=SubgroupOut, status_code=status.HTTP_201_CREATED)
def create_subgroup(
    group_id: str,
    payload: SubgroupCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubgroupOut:
    if db.get(Group, group_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    if payload.subject_id and db.get(Subject, payload.subject_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    # NULL never equals NULL in the unique index, so group-wide duplicates are checked here.
    subject_scope = (
        Subgroup.subject_id.is_(None) if payload.subject_id is None else Subgroup.subject_id == payload.subject_id
    )
    existing = db.execute(
        select(Subgroup).where(
            Subgroup.group_id == group_id,
            Subgroup.number == payload.number,
            subject_scope,
        )
    ).scalars().first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subgroup with this number already exists")

    subgroup = Subgroup(group_id=group_id, **payload.model_dump())
    db.add(subgroup)
    db.commit()
    db.refresh(subgroup)
    return subgroup


@router.get("/groups/{group_id}/subgroups/{subgroup_id}", response_model=SubgroupOut)
def read_subgroup(
    group_id: str,
    subgroup_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SubgroupOut:
    return _get_subgroup_or_404(db, group_id, subgroup_id)


@router.patch("/groups/{group_id}/subgroups/{subgroup_id}", response_model=SubgroupOut)
def update_subgroup(
    group_id: str,
    subgroup_id: str,
    payload: SubgroupUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> SubgroupOut:
    subgroup = _get_subgroup_or_404(db, group_id, subgroup_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "name" and value is None:
            continue
        setattr(subgroup, key, value)
    db.commit()
    db.refresh(subgroup)
    return subgroup


@router.delete("/groups/{group_id}/subgroups/{subgroup_id}")
def deactivate_subgroup(
    group_id: str,
    subgroup_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    subgroup = _get_subgroup_or_404(db, group_id, subgroup_id)
    subgroup.is_active = False
    db.commit()
    return {"message": "Subgroup deleted"}
