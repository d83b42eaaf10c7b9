"""
Dashboard synchronizer: keeps dashboard documents and library panels in step.

A dashboard document is an opaque JSON object with a "panels" list. Any
panel may be a row holding its own "panels" list, to any depth. A panel that
embeds a library panel carries a header under "libraryPanel":

    {"id": 2, "gridPos": {...}, "libraryPanel": {"uid": "...", "name": "..."}}

Four passes are offered:
- hydrate: on dashboard load, expand every header into the stored model
- clean: before dashboard save, strip every library panel back to its header
- reconcile: after dashboard save, make connection rows match the headers
- disconnect_all: on dashboard delete, drop every connection row

Every pass validates all headers before touching the document or the store,
so a malformed header never leaves a half-processed dashboard behind.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from librarypanels.errors import HeaderNameMissing, HeaderUIDMissing
from librarypanels.schemas import SignedInUser
from librarypanels.services.catalog import LibraryPanelCatalog
from librarypanels.services.connections import ConnectionManager

logger = logging.getLogger(__name__)

LIBRARY_PANEL_KEY = "libraryPanel"
# Placement belongs to the dashboard, not to the library panel definition
PLACEMENT_KEYS = ("id", "gridPos")


def iter_panels(panels: Any) -> Iterator[Tuple[List[Any], int]]:
    """
    Yield (container, index) for every panel object, depth first, in
    document order. Nested "panels" lists are read after the caller has seen
    the parent, so replacing container[index] is safe while iterating.
    """
    if not isinstance(panels, list):
        return
    for index in range(len(panels)):
        if not isinstance(panels[index], dict):
            continue
        yield panels, index
        yield from iter_panels(panels[index].get("panels"))


def iter_library_panels(document: Dict[str, Any]) -> Iterator[Tuple[List[Any], int, Any]]:
    for panels, index in iter_panels(document.get("panels")):
        header = panels[index].get(LIBRARY_PANEL_KEY)
        if header is not None:
            yield panels, index, header


def _header_value(header: Any, key: str) -> Optional[str]:
    if not isinstance(header, dict):
        return None
    value = header.get(key)
    if not isinstance(value, str) or not value:
        return None
    return value


def referenced_uids(document: Dict[str, Any], require_name: bool = False) -> List[str]:
    """
    Validate every header and return the referenced uids, first occurrence
    order, without duplicates.

    Raises:
        HeaderUIDMissing: a header has no uid
        HeaderNameMissing: require_name is set and a header has no name
    """
    uids: List[str] = []
    for _, _, header in iter_library_panels(document):
        uid = _header_value(header, "uid")
        if uid is None:
            raise HeaderUIDMissing()
        if require_name and _header_value(header, "name") is None:
            raise HeaderNameMissing()
        if uid not in uids:
            uids.append(uid)
    return uids


def unresolved_type(name: Optional[str], uid: str) -> str:
    return f'Name: "{name or ""}", UID: "{uid}"'


@dataclass
class Reconciliation:
    """Connection delta applied by DashboardSynchronizer.reconcile"""
    connected: List[str] = field(default_factory=list)
    disconnected: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.connected or self.disconnected)


class DashboardSynchronizer:
    """
    Walks dashboard documents to hydrate, clean, reconcile or disconnect
    their library panels.
    """

    def __init__(self, catalog: LibraryPanelCatalog, connections: ConnectionManager):
        self.catalog = catalog
        self.connections = connections

    def hydrate(self, user: SignedInUser, dashboard_id: int, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Expand library panel headers in place for display.

        A header whose uid is connected to the dashboard gets the stored
        model, keeping the document's id and gridPos, and a header carrying
        caller-relative meta. Any other header is left as is and the panel
        type is set to a placeholder naming it.

        Raises:
            HeaderUIDMissing: before any change to the document
        """
        if not referenced_uids(document):
            return document
        library_panels = self.catalog.get_connected_to_dashboard(user, dashboard_id)

        for panels, index, header in list(iter_library_panels(document)):
            panel = panels[index]
            uid = header["uid"]
            dto = library_panels.get(uid)
            if dto is None:
                logger.warning(
                    "Library panel %s referenced by dashboard %s is not connected (org=%s)",
                    uid, dashboard_id, user.org_id,
                )
                panel["type"] = unresolved_type(header.get("name"), uid)
                continue

            hydrated = copy.deepcopy(dto.model)
            for key in PLACEMENT_KEYS:
                if key in panel:
                    hydrated[key] = panel[key]
                else:
                    hydrated.pop(key, None)
            hydrated[LIBRARY_PANEL_KEY] = {
                "uid": dto.uid,
                "name": dto.name,
                "meta": dto.meta.to_wire(),
            }
            panels[index] = hydrated
        return document

    def clean(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Strip every library panel in place down to id, gridPos and a
        {uid, name} header so saved dashboards never embed library content.

        Raises:
            HeaderUIDMissing, HeaderNameMissing: before any change
        """
        referenced_uids(document, require_name=True)
        for panels, index, header in list(iter_library_panels(document)):
            panel = panels[index]
            cleaned = {key: panel[key] for key in PLACEMENT_KEYS if key in panel}
            cleaned[LIBRARY_PANEL_KEY] = {"uid": header["uid"], "name": header["name"]}
            panels[index] = cleaned
        return document

    def reconcile(self, user: SignedInUser, dashboard_id: int, document: Dict[str, Any]) -> Reconciliation:
        """
        Make the dashboard's connection rows match the headers in its document.

        Connects referenced panels that are not connected yet and unlinks
        connected panels that are no longer referenced, in one transaction.

        Raises:
            HeaderUIDMissing: before any connection change
            LibraryPanelNotFound: a referenced uid is unknown; nothing is changed
        """
        wanted = referenced_uids(document)
        result = Reconciliation()
        with self.connections.store.transaction():
            existing = self.connections.connected_uids(user.org_id, dashboard_id)
            for uid in wanted:
                if uid not in existing:
                    self.connections.connect(user, dashboard_id, uid)
                    result.connected.append(uid)
            for uid in existing:
                if uid not in wanted:
                    self.connections.unlink(user.org_id, dashboard_id, uid)
                    result.disconnected.append(uid)
        if result.changed:
            logger.info(
                "Reconciled dashboard %s (org=%s): +%s -%s",
                dashboard_id, user.org_id, result.connected, result.disconnected,
            )
        return result

    def disconnect_all(
        self,
        user: SignedInUser,
        dashboard_id: int,
        document: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Remove every connection of a dashboard that is being deleted.

        The document is optional; when given, its headers are validated first.
        """
        if document is not None:
            referenced_uids(document)
        return self.connections.disconnect_dashboard(user.org_id, dashboard_id)
