"""
Ownership and visibility rules shared by all services
"""
from exambank.exceptions import NoPermission, RecordUnavailable
from exambank.models.enums import StatusShareEnum
from exambank.schemas.common import Caller


def is_owner(record, caller: Caller, allow_admin: bool = True) -> bool:
    return record.owner_id == caller.id or (allow_admin and caller.is_admin)


def is_visible(record, caller: Caller) -> bool:
    """Public, enabled, owned by the caller, or caller is admin"""
    return (
        record.status == StatusShareEnum.PUBLIC.value
        or bool(getattr(record, "enable", False))
        or is_owner(record, caller)
    )


def ensure_owner(record, caller: Caller, label: str, allow_admin: bool = True) -> None:
    """Mutations: owner only (admins bypass unless allow_admin is False)"""
    if not is_owner(record, caller, allow_admin=allow_admin):
        raise NoPermission(f"{label} {record.id}")


def ensure_visible(record, caller: Caller, label: str) -> None:
    if not is_visible(record, caller):
        raise RecordUnavailable(f"{label} {record.id}")
