"""Reconciling client-supplied subgroup references with stored subgroups.

Two addressing schemes coexist in schedule payloads: small ordinal numbers
("2") typed in before subgroups had their own records, and the stable ids
issued for subgroup records. Resolution is best-effort: anything that cannot
be matched degrades to ``None``, i.e. an entry for the whole group.
"""
from __future__ import annotations

import logging
import re

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.schedule import Schedule
from app.models.subgroup import Subgroup

logger = logging.getLogger(__name__)

NO_SUBGROUP_SENTINEL = "none"
ORDINAL_PATTERN = re.compile(r"[0-9]{1,4}")


def is_whole_group_reference(raw_reference: str | None) -> bool:
    # Compared as sent: " 3 " or "NONE" are looked up as identifiers.
    return raw_reference is None or raw_reference in ("", NO_SUBGROUP_SENTINEL)


def find_subgroup_by_number(
    db: Session,
    *,
    group_id: str,
    number: int,
    subject_id: str | None,
) -> Subgroup | None:
    """Active subgroup with ``number`` in the group; subject-scoped beats group-wide."""
    scope = Subgroup.subject_id.is_(None)
    if subject_id:
        scope = or_(Subgroup.subject_id.is_(None), Subgroup.subject_id == subject_id)
    candidates = list(
        db.execute(
            select(Subgroup).where(
                Subgroup.group_id == group_id,
                Subgroup.number == number,
                Subgroup.is_active.is_(True),
                scope,
            )
        ).scalars()
    )
    if not candidates:
        return None
    candidates.sort(key=lambda item: (item.is_group_wide, item.id))
    return candidates[0]


def resolve_subgroup_reference(
    db: Session,
    raw_reference: str | None,
    group_id: str | None,
    subject_id: str | None,
) -> str | None:
    if is_whole_group_reference(raw_reference):
        return None
    reference = raw_reference

    try:
        if ORDINAL_PATTERN.fullmatch(reference):
            if not group_id:
                return None
            subgroup = find_subgroup_by_number(
                db,
                group_id=group_id,
                number=int(reference),
                subject_id=subject_id,
            )
            return subgroup.id if subgroup is not None else None

        subgroup = db.get(Subgroup, reference)
        return subgroup.id if subgroup is not None else None
    except SQLAlchemyError:
        logger.warning("Subgroup lookup failed for reference %r; treating as whole group", reference, exc_info=True)
        return None


def subgroup_fits_schedule(subgroup: Subgroup | None, *, group_id: str | None, subject_id: str | None) -> bool:
    if subgroup is None or group_id is None:
        return False
    if subgroup.group_id != group_id:
        return False
    return subgroup.is_group_wide or subgroup.subject_id == subject_id


def enforce_subgroup_scope(db: Session, schedule: Schedule) -> None:
    """Clear ``schedule.subgroup_id`` when the subgroup lies outside the entry's group/subject."""
    if schedule.subgroup_id is None:
        return
    subgroup = db.get(Subgroup, schedule.subgroup_id)
    if subgroup_fits_schedule(subgroup, group_id=schedule.group_id, subject_id=schedule.subject_id):
        return
    logger.warning(
        "Subgroup %s is outside group %s / subject %s; schedule %s applies to the whole group",
        schedule.subgroup_id,
        schedule.group_id,
        schedule.subject_id,
        schedule.id,
    )
    schedule.subgroup_id = None


def admissible_subgroup_references(
    db: Session,
    *,
    group_id: str,
    numbers: list[int],
    mode: str,
) -> list[str]:
    """Values of ``Schedule.subgroup_id`` a member with these ordinals may see.

    ``ordinal`` mode keeps the historical comparison of raw ordinals against the
    stored reference. ``resolved`` mode additionally maps each ordinal onto the
    ids of the group's active subgroups carrying that number.
    """
    references = [str(number) for number in dict.fromkeys(numbers)]
    if mode != "resolved" or not references:
        return references

    resolved_ids = db.execute(
        select(Subgroup.id).where(
            Subgroup.group_id == group_id,
            Subgroup.number.in_(list(dict.fromkeys(numbers))),
            Subgroup.is_active.is_(True),
        )
    ).scalars()
    return list(dict.fromkeys([*references, *resolved_ids]))
