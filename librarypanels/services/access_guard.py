from typing import List, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from librarypanels.models import FolderAcl, FolderPermission, OrgRole

GENERAL_FOLDER_ID = 0

# Applied to folders that carry no ACL entries of their own
DEFAULT_FOLDER_ACL: Tuple[Tuple[OrgRole, FolderPermission], ...] = (
    (OrgRole.VIEWER, FolderPermission.VIEW),
    (OrgRole.EDITOR, FolderPermission.EDIT),
)


class AccessGuard(Protocol):
    def allowed(self, org_id: int, folder_id: int, role: OrgRole, action: FolderPermission) -> bool:
        ...


def _role(value) -> OrgRole:
    return value if isinstance(value, OrgRole) else OrgRole(str(value))


def _permission(value) -> FolderPermission:
    return value if isinstance(value, FolderPermission) else FolderPermission(str(value))


class FolderAclGuard:
    """
    Allow/deny decisions from role based folder ACL entries.

    An entry granted to a role also applies to every higher role. Org admins
    are always allowed. The General folder and folders without entries use
    DEFAULT_FOLDER_ACL.
    """

    def __init__(self, db: Session):
        self.db = db

    def _entries(self, org_id: int, folder_id: int) -> List[Tuple[OrgRole, FolderPermission]]:
        if folder_id == GENERAL_FOLDER_ID:
            return list(DEFAULT_FOLDER_ACL)
        rows = self.db.scalars(select(FolderAcl).where(
            FolderAcl.org_id == org_id,
            FolderAcl.folder_id == folder_id,
        )).all()
        if not rows:
            return list(DEFAULT_FOLDER_ACL)
        return [(_role(row.role), _permission(row.permission)) for row in rows]

    def allowed(self, org_id: int, folder_id: int, role: OrgRole, action: FolderPermission) -> bool:
        role = _role(role)
        if role == OrgRole.ADMIN:
            return True
        wanted = _permission(action).rank
        for entry_role, entry_permission in self._entries(org_id, folder_id):
            if role.rank >= entry_role.rank and entry_permission.rank >= wanted:
                return True
        return False
