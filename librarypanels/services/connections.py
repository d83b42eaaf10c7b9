import logging
from typing import List

from librarypanels.errors import LibraryPanelNotFound
from librarypanels.models import FolderPermission, LibraryPanel
from librarypanels.schemas import SignedInUser
from librarypanels.services.access_guard import AccessGuard
from librarypanels.services.store import PanelStore

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Links library panels to the dashboards that embed them.
    """

    def __init__(self, store: PanelStore, guard: AccessGuard):
        self.store = store
        self.guard = guard

    def _panel(self, user: SignedInUser, uid: str) -> LibraryPanel:
        panel = self.store.get_panel(user.org_id, uid)
        if panel is None or not self.guard.allowed(user.org_id, panel.folder_id, user.role, FolderPermission.VIEW):
            raise LibraryPanelNotFound()
        return panel

    def connect(self, user: SignedInUser, dashboard_id: int, uid: str) -> None:
        """Connect a panel to a dashboard; connecting twice is a no-op"""
        with self.store.transaction():
            self._panel(user, uid)
            added = self.store.insert_connection(user.org_id, uid, dashboard_id, user.user_id)
        if added:
            logger.info("Connected library panel %s to dashboard %s (org=%s)", uid, dashboard_id, user.org_id)

    def disconnect(self, user: SignedInUser, dashboard_id: int, uid: str) -> None:
        """
        Remove the link between a panel and a dashboard.

        Raises:
            LibraryPanelNotFound: unknown uid or no such link
        """
        with self.store.transaction():
            self._panel(user, uid)
            if not self.store.delete_connection(user.org_id, uid, dashboard_id):
                raise LibraryPanelNotFound("library panel is not connected to that dashboard")
        logger.info("Disconnected library panel %s from dashboard %s (org=%s)", uid, dashboard_id, user.org_id)

    def list_connected_dashboards(self, user: SignedInUser, uid: str) -> List[int]:
        with self.store.transaction():
            self._panel(user, uid)
            return self.store.list_connected_dashboards(user.org_id, uid)

    def connected_uids(self, org_id: int, dashboard_id: int) -> List[str]:
        with self.store.transaction():
            return self.store.list_connected_uids(org_id, dashboard_id)

    def unlink(self, org_id: int, dashboard_id: int, uid: str) -> bool:
        """Drop a link the dashboard no longer references, whatever the panel's visibility"""
        with self.store.transaction():
            removed = self.store.delete_connection(org_id, uid, dashboard_id)
        if removed:
            logger.info("Unlinked library panel %s from dashboard %s (org=%s)", uid, dashboard_id, org_id)
        return removed

    def disconnect_dashboard(self, org_id: int, dashboard_id: int) -> int:
        """Remove every connection of a dashboard; returns the number removed"""
        with self.store.transaction():
            removed = self.store.delete_connections_for_dashboard(org_id, dashboard_id)
        logger.info("Removed %d library panel connection(s) from dashboard %s (org=%s)", removed, dashboard_id, org_id)
        return removed
