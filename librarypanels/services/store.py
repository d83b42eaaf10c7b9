"""
PanelStore: relational storage for library panels and their connections.

Uniqueness is enforced by the database, never by check-then-insert:
- (org_id, folder_id, name) and (org_id, uid) on library_panels
- (org_id, library_panel_uid, dashboard_id) on library_panel_connections

A violated panel constraint surfaces as LibraryPanelConflict, a duplicate
connection insert is silently ignored.
"""

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from librarypanels.errors import LibraryPanelConflict
from librarypanels.models import LibraryPanel, LibraryPanelConnection

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class PanelStore:
    """
    Point CRUD, ordered scans and connection-table operations on one session.
    """

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self):
        """
        Run the enclosed block atomically.

        Commits when the outermost block exits cleanly and rolls back on any
        exception. Nested blocks join the outer transaction.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth = 0

    # ========================================================================
    # LIBRARY PANELS
    # ========================================================================

    @staticmethod
    def decode_model(panel: LibraryPanel) -> Dict[str, Any]:
        return json.loads(panel.model) if panel.model else {}

    def uid_exists(self, org_id: int, uid: str) -> bool:
        stmt = select(LibraryPanel.id).where(LibraryPanel.org_id == org_id, LibraryPanel.uid == uid)
        return self.db.scalars(stmt).first() is not None

    def get_panel(self, org_id: int, uid: str) -> Optional[LibraryPanel]:
        return self.db.scalars(select(LibraryPanel).where(
            LibraryPanel.org_id == org_id,
            LibraryPanel.uid == uid,
        )).first()

    def list_panels(self, org_id: int, folder_ids: Optional[Iterable[int]] = None) -> List[LibraryPanel]:
        """Panels of an organization in creation order, optionally limited to folders"""
        stmt = select(LibraryPanel).where(LibraryPanel.org_id == org_id)
        if folder_ids is not None:
            stmt = stmt.where(LibraryPanel.folder_id.in_(list(folder_ids)))
        return list(self.db.scalars(stmt.order_by(LibraryPanel.id)).all())

    def list_folder_ids(self, org_id: int) -> List[int]:
        stmt = select(LibraryPanel.folder_id).where(LibraryPanel.org_id == org_id).distinct()
        return sorted(self.db.scalars(stmt).all())

    def insert_panel(
        self,
        org_id: int,
        folder_id: int,
        uid: str,
        name: str,
        model: Dict[str, Any],
        user_id: int,
    ) -> LibraryPanel:
        now = datetime.utcnow()
        panel = LibraryPanel(
            org_id=org_id,
            folder_id=folder_id,
            uid=uid,
            name=name,
            model=json.dumps(model),
            created_at=now,
            updated_at=now,
            created_by=user_id,
            updated_by=user_id,
        )
        self.db.add(panel)
        self._flush_or_conflict(name, folder_id)
        return panel

    def update_panel(
        self,
        panel: LibraryPanel,
        folder_id: int,
        name: str,
        model: Dict[str, Any],
        user_id: int,
    ) -> LibraryPanel:
        panel.folder_id = folder_id
        panel.name = name
        panel.model = json.dumps(model)
        panel.updated_at = datetime.utcnow()
        panel.updated_by = user_id
        self._flush_or_conflict(name, folder_id)
        return panel

    def delete_panel(self, panel: LibraryPanel) -> int:
        """Delete a panel and every connection to it; returns removed connections"""
        removed = self.delete_connections_for_panel(panel.org_id, panel.uid)
        self.db.delete(panel)
        self.db.flush()
        return removed

    def _flush_or_conflict(self, name: str, folder_id: int) -> None:
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.debug("Library panel constraint violation: %s", e.orig)
            raise LibraryPanelConflict(
                f"library panel '{name}' already exists in folder {folder_id}"
            ) from e

    # ========================================================================
    # CONNECTIONS
    # ========================================================================

    def insert_connection(self, org_id: int, uid: str, dashboard_id: int, user_id: int) -> bool:
        """
        Insert a connection row, relying on the unique constraint.

        Returns:
            True when a row was added, False when the link already existed.
        """
        values = {
            "org_id": org_id,
            "library_panel_uid": uid,
            "dashboard_id": dashboard_id,
            "created_at": datetime.utcnow(),
            "created_by": user_id,
        }
        table = LibraryPanelConnection.__table__
        dialect_insert = _UPSERT_DIALECTS.get(self.db.get_bind().dialect.name)
        if dialect_insert is not None:
            result = self.db.execute(dialect_insert(table).values(**values).on_conflict_do_nothing())
            return result.rowcount > 0

        try:
            with self.db.begin_nested():
                self.db.execute(insert(table).values(**values))
        except IntegrityError:
            logger.debug("Connection %s -> dashboard %s already exists", uid, dashboard_id)
            return False
        return True

    def delete_connection(self, org_id: int, uid: str, dashboard_id: int) -> bool:
        result = self.db.execute(delete(LibraryPanelConnection).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.library_panel_uid == uid,
            LibraryPanelConnection.dashboard_id == dashboard_id,
        ))
        return result.rowcount > 0

    def delete_connections_for_panel(self, org_id: int, uid: str) -> int:
        result = self.db.execute(delete(LibraryPanelConnection).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.library_panel_uid == uid,
        ))
        return result.rowcount

    def delete_connections_for_dashboard(self, org_id: int, dashboard_id: int) -> int:
        result = self.db.execute(delete(LibraryPanelConnection).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.dashboard_id == dashboard_id,
        ))
        return result.rowcount

    def count_connections(self, org_id: int, uid: str) -> int:
        return self.db.scalar(select(func.count()).select_from(LibraryPanelConnection).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.library_panel_uid == uid,
        )) or 0

    def list_connected_dashboards(self, org_id: int, uid: str) -> List[int]:
        """Dashboard ids linked to a panel, in connection-creation order"""
        return list(self.db.scalars(select(LibraryPanelConnection.dashboard_id).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.library_panel_uid == uid,
        ).order_by(LibraryPanelConnection.id)).all())

    def list_connected_uids(self, org_id: int, dashboard_id: int) -> List[str]:
        return list(self.db.scalars(select(LibraryPanelConnection.library_panel_uid).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.dashboard_id == dashboard_id,
        ).order_by(LibraryPanelConnection.id)).all())

    def list_panels_for_dashboard(self, org_id: int, dashboard_id: int) -> List[LibraryPanel]:
        return list(self.db.scalars(select(LibraryPanel).join(
            LibraryPanelConnection,
            (LibraryPanelConnection.library_panel_uid == LibraryPanel.uid)
            & (LibraryPanelConnection.org_id == LibraryPanel.org_id),
        ).where(
            LibraryPanelConnection.org_id == org_id,
            LibraryPanelConnection.dashboard_id == dashboard_id,
        ).order_by(LibraryPanelConnection.id)).all())
