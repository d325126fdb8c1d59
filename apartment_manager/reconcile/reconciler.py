"""
Derived-Field Reconciler

Every path that writes an apartment (the edit form, each CSV row, each
Excel row) goes through `build_record`. That is the only place the
resident placeholder and the "owner is resident" flag are decided.

Rules, in order:
1. Toggle on  -> resident becomes the owner.
2. Toggle off -> resident as given, or "Vacant" when empty.
3. Flag       -> owner is non-empty and equals the final resident.

Rule 3 looks at the final resident, not the toggle. With the toggle on
and no owner, the resident is "" and the flag is False.
"""

from apartment_manager.models.occupancy import (
    VACANT,
    OccupancyRecord,
    derive_same_flag,
)


def reconcile(
    owner: str,
    resident: str,
    owner_is_resident: bool,
) -> tuple[str, bool]:
    """
    Compute the resident to persist and the derived flag.

    Args:
        owner: Owner name as entered
        resident: Resident name as entered (ignored when the toggle is on)
        owner_is_resident: Whether the "owner is resident" toggle is on

    Returns:
        (effective_resident, effective_owner_is_resident)
    """
    if owner_is_resident:
        effective_resident = owner
    else:
        effective_resident = resident or VACANT

    return effective_resident, derive_same_flag(owner, effective_resident)


def build_record(
    unit_id: str,
    owner: str,
    resident: str,
    owner_is_resident: bool = False,
) -> OccupancyRecord:
    """
    Build a reconciled OccupancyRecord.

    Imports always pass `owner_is_resident=False`; the "Same" column of an
    imported file is never read.
    """
    effective_resident, same = reconcile(owner, resident, owner_is_resident)
    return OccupancyRecord(
        unit_id=unit_id,
        owner=owner,
        resident=effective_resident,
        owner_is_resident=same,
    )
