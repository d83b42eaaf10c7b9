"""
Library panel catalog: create, read, update and delete library panels.

Every read assembles a LibraryPanelDTO whose meta is caller-relative:
canEdit comes from the AccessGuard at read time and connectedDashboards is
a live count of connection rows.
"""

import copy
import logging
import secrets
from typing import Any, Dict, List, Optional

from librarypanels.errors import (
    LibraryPanelError,
    LibraryPanelForbidden,
    LibraryPanelNotFound,
    LibraryPanelValidationError,
)
from librarypanels.models import FolderPermission, LibraryPanel
from librarypanels.schemas import (
    LibraryPanelDTO,
    LibraryPanelMeta,
    LibraryPanelMetaUser,
    SignedInUser,
)
from librarypanels.services.access_guard import AccessGuard
from librarypanels.services.store import PanelStore
from librarypanels.services.user_meta import UserMetaResolver

logger = logging.getLogger(__name__)

UID_LENGTH = 9
UID_ATTEMPTS = 3


def _require_object(model: Any) -> Dict[str, Any]:
    if not isinstance(model, dict):
        raise LibraryPanelValidationError("library panel model must be a JSON object")
    return copy.deepcopy(model)


class LibraryPanelCatalog:
    """
    Manages library panel records and assembles their DTOs.
    """

    def __init__(self, store: PanelStore, guard: AccessGuard, users: UserMetaResolver):
        """
        Args:
            store: PanelStore bound to the request session
            guard: folder permission evaluator
            users: user id -> display metadata lookup
        """
        self.store = store
        self.guard = guard
        self.users = users

    # ========================================================================
    # PERMISSIONS
    # ========================================================================

    def can_view(self, user: SignedInUser, folder_id: int) -> bool:
        return self.guard.allowed(user.org_id, folder_id, user.role, FolderPermission.VIEW)

    def can_edit(self, user: SignedInUser, folder_id: int) -> bool:
        return self.guard.allowed(user.org_id, folder_id, user.role, FolderPermission.EDIT)

    def _require_edit(self, user: SignedInUser, folder_id: int) -> None:
        if not self.can_edit(user, folder_id):
            raise LibraryPanelForbidden(f"no edit permission on folder {folder_id}")

    def visible_panel(self, user: SignedInUser, uid: str) -> LibraryPanel:
        """
        Fetch a panel the caller may see.

        Unknown uid, another organization and denied visibility all raise
        the same LibraryPanelNotFound.
        """
        panel = self.store.get_panel(user.org_id, uid)
        if panel is None or not self.can_view(user, panel.folder_id):
            raise LibraryPanelNotFound()
        return panel

    # ========================================================================
    # DTO ASSEMBLY
    # ========================================================================

    def _meta_user(self, user_id: int) -> LibraryPanelMetaUser:
        meta = self.users.resolve(user_id)
        return LibraryPanelMetaUser(id=user_id, name=meta.name, avatar_url=meta.avatar_url)

    def to_dto(self, user: SignedInUser, panel: LibraryPanel) -> LibraryPanelDTO:
        meta = LibraryPanelMeta(
            can_edit=self.can_edit(user, panel.folder_id),
            connected_dashboards=self.store.count_connections(panel.org_id, panel.uid),
            created=panel.created_at,
            updated=panel.updated_at,
            created_by=self._meta_user(panel.created_by),
            updated_by=self._meta_user(panel.updated_by),
        )
        return LibraryPanelDTO(
            id=panel.id,
            org_id=panel.org_id,
            folder_id=panel.folder_id,
            uid=panel.uid,
            name=panel.name,
            model=self.store.decode_model(panel),
            meta=meta,
        )

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def _generate_uid(self, org_id: int) -> str:
        for _ in range(UID_ATTEMPTS):
            uid = secrets.token_urlsafe(UID_LENGTH)[:UID_LENGTH]
            if not self.store.uid_exists(org_id, uid):
                return uid
        raise LibraryPanelError("could not generate a unique library panel uid")

    def create(self, user: SignedInUser, folder_id: int, name: str, model: Dict[str, Any]) -> LibraryPanelDTO:
        model = _require_object(model)
        model["title"] = name
        with self.store.transaction():
            self._require_edit(user, folder_id)
            panel = self.store.insert_panel(
                org_id=user.org_id,
                folder_id=folder_id,
                uid=self._generate_uid(user.org_id),
                name=name,
                model=model,
                user_id=user.user_id,
            )
            dto = self.to_dto(user, panel)
        logger.info("Created library panel '%s' (uid=%s, org=%s, folder=%s)", name, dto.uid, user.org_id, folder_id)
        return dto

    def get(self, user: SignedInUser, uid: str) -> LibraryPanelDTO:
        with self.store.transaction():
            return self.to_dto(user, self.visible_panel(user, uid))

    def get_all(self, user: SignedInUser) -> List[LibraryPanelDTO]:
        with self.store.transaction():
            visible = [
                folder_id for folder_id in self.store.list_folder_ids(user.org_id)
                if self.can_view(user, folder_id)
            ]
            if not visible:
                return []
            return [self.to_dto(user, panel) for panel in self.store.list_panels(user.org_id, visible)]

    def get_connected_to_dashboard(self, user: SignedInUser, dashboard_id: int) -> Dict[str, LibraryPanelDTO]:
        """Library panels connected to a dashboard, keyed by uid"""
        with self.store.transaction():
            return {
                panel.uid: self.to_dto(user, panel)
                for panel in self.store.list_panels_for_dashboard(user.org_id, dashboard_id)
            }

    def delete(self, user: SignedInUser, uid: str) -> None:
        with self.store.transaction():
            panel = self.visible_panel(user, uid)
            self._require_edit(user, panel.folder_id)
            removed = self.store.delete_panel(panel)
        logger.info("Deleted library panel %s (org=%s), removed %d connection(s)", uid, user.org_id, removed)

    def patch(
        self,
        user: SignedInUser,
        uid: str,
        folder_id: Optional[int] = None,
        name: Optional[str] = None,
        model: Optional[Dict[str, Any]] = None,
    ) -> LibraryPanelDTO:
        """
        Partially update a library panel.

        Omitted (None) fields keep their stored value. A supplied model
        replaces the stored one wholesale. Whenever name or model is supplied
        the model title is synced to the resulting name. The name collision
        check runs against the resulting folder.
        """
        with self.store.transaction():
            panel = self.visible_panel(user, uid)
            self._require_edit(user, panel.folder_id)

            new_folder_id = panel.folder_id if folder_id is None else folder_id
            if new_folder_id != panel.folder_id:
                self._require_edit(user, new_folder_id)
            new_name = panel.name if name is None else name
            new_model = self.store.decode_model(panel) if model is None else _require_object(model)
            if name is not None or model is not None:
                new_model["title"] = new_name

            self.store.update_panel(panel, new_folder_id, new_name, new_model, user.user_id)
            dto = self.to_dto(user, panel)
        logger.info("Patched library panel %s (org=%s, folder=%s, name='%s')", uid, user.org_id, new_folder_id, new_name)
        return dto
