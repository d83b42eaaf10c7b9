"""
Library Panels HTTP API

Translates catalog and connection outcomes to HTTP status codes:
404 for unknown/denied panels and missing links, 400 for name conflicts and
invalid models, 403 for missing edit permission.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from librarypanels.database import SessionLocal
from librarypanels.errors import LibraryPanelError
from librarypanels.models import OrgRole
from librarypanels.schemas import CreateLibraryPanelCommand, PatchLibraryPanelCommand, SignedInUser
from librarypanels.services.access_guard import FolderAclGuard
from librarypanels.services.catalog import LibraryPanelCatalog
from librarypanels.services.connections import ConnectionManager
from librarypanels.services.store import PanelStore
from librarypanels.services.user_meta import SqlUserMetaResolver

router = APIRouter(prefix="/api/library-panels", tags=["library-panels"])
logger = logging.getLogger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_signed_in_user(
    x_org_id: int = Header(...),
    x_user_id: int = Header(...),
    x_org_role: OrgRole = Header(OrgRole.VIEWER),
) -> SignedInUser:
    return SignedInUser(user_id=x_user_id, org_id=x_org_id, role=x_org_role)


def get_store(db: Session = Depends(get_db)) -> PanelStore:
    return PanelStore(db)


def get_catalog(store: PanelStore = Depends(get_store)) -> LibraryPanelCatalog:
    return LibraryPanelCatalog(store, FolderAclGuard(store.db), SqlUserMetaResolver(store.db))


def get_connections(store: PanelStore = Depends(get_store)) -> ConnectionManager:
    return ConnectionManager(store, FolderAclGuard(store.db))


def _http_error(e: LibraryPanelError) -> HTTPException:
    if e.status_code >= 500:
        logger.error("Library panel request failed: %s", e)
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/")
def create_library_panel(
    command: CreateLibraryPanelCommand,
    user: SignedInUser = Depends(get_signed_in_user),
    catalog: LibraryPanelCatalog = Depends(get_catalog),
):
    try:
        dto = catalog.create(user, command.folder_id, command.name, command.model)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"result": dto.to_wire()}


@router.get("/")
def get_all_library_panels(
    user: SignedInUser = Depends(get_signed_in_user),
    catalog: LibraryPanelCatalog = Depends(get_catalog),
):
    return {"result": [dto.to_wire() for dto in catalog.get_all(user)]}


@router.get("/{uid}")
def get_library_panel(
    uid: str,
    user: SignedInUser = Depends(get_signed_in_user),
    catalog: LibraryPanelCatalog = Depends(get_catalog),
):
    try:
        dto = catalog.get(user, uid)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"result": dto.to_wire()}


@router.patch("/{uid}")
def patch_library_panel(
    uid: str,
    command: PatchLibraryPanelCommand,
    user: SignedInUser = Depends(get_signed_in_user),
    catalog: LibraryPanelCatalog = Depends(get_catalog),
):
    try:
        dto = catalog.patch(user, uid, folder_id=command.folder_id, name=command.name, model=command.model)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"result": dto.to_wire()}


@router.delete("/{uid}")
def delete_library_panel(
    uid: str,
    user: SignedInUser = Depends(get_signed_in_user),
    catalog: LibraryPanelCatalog = Depends(get_catalog),
):
    try:
        catalog.delete(user, uid)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"message": "Library panel deleted"}


@router.get("/{uid}/dashboards")
def get_connected_dashboards(
    uid: str,
    user: SignedInUser = Depends(get_signed_in_user),
    connections: ConnectionManager = Depends(get_connections),
):
    try:
        dashboard_ids = connections.list_connected_dashboards(user, uid)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"result": dashboard_ids}


@router.post("/{uid}/dashboards/{dashboard_id}")
def connect_library_panel(
    uid: str,
    dashboard_id: int,
    user: SignedInUser = Depends(get_signed_in_user),
    connections: ConnectionManager = Depends(get_connections),
):
    try:
        connections.connect(user, dashboard_id, uid)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"message": "Library panel connected"}


@router.delete("/{uid}/dashboards/{dashboard_id}")
def disconnect_library_panel(
    uid: str,
    dashboard_id: int,
    user: SignedInUser = Depends(get_signed_in_user),
    connections: ConnectionManager = Depends(get_connections),
):
    try:
        connections.disconnect(user, dashboard_id, uid)
    except LibraryPanelError as e:
        raise _http_error(e)
    return {"message": "Library panel disconnected"}
