"""Shared fixtures: an in-memory database and the wired library panel services."""

from __future__ import annotations

import copy

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from librarypanels.database import init_db
from librarypanels.models import Folder, FolderAcl, FolderPermission, OrgRole, User
from librarypanels.schemas import SignedInUser
from librarypanels.services.access_guard import FolderAclGuard
from librarypanels.services.catalog import LibraryPanelCatalog
from librarypanels.services.connections import ConnectionManager
from librarypanels.services.store import PanelStore
from librarypanels.services.synchronizer import DashboardSynchronizer
from librarypanels.services.user_meta import SqlUserMetaResolver

TEXT_PANEL_MODEL = {
    "datasource": "${DS_GDEV-TESTDATA}",
    "id": 1,
    "title": "Text - Library Panel",
    "type": "text",
}


@pytest.fixture
def panel_model() -> dict:
    return copy.deepcopy(TEXT_PANEL_MODEL)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    session.add_all([
        User(id=1, login="user_in_db", email="user.in.db@test.com", name="User In DB"),
        User(id=2, login="other_user", email="other.user@test.com", name="Other User"),
        Folder(id=1, org_id=1, uid="testFolder", title="TestFolder"),
    ])
    session.commit()
    yield session
    session.close()


@pytest.fixture
def grant(db):
    """Add a folder ACL entry"""

    def _grant(folder_id: int, role: OrgRole, permission: FolderPermission, org_id: int = 1) -> None:
        db.add(FolderAcl(org_id=org_id, folder_id=folder_id, role=role, permission=permission))
        db.commit()

    return _grant


@pytest.fixture
def admin() -> SignedInUser:
    return SignedInUser(user_id=1, org_id=1, role=OrgRole.ADMIN)


@pytest.fixture
def editor() -> SignedInUser:
    return SignedInUser(user_id=2, org_id=1, role=OrgRole.EDITOR)


@pytest.fixture
def viewer() -> SignedInUser:
    return SignedInUser(user_id=2, org_id=1, role=OrgRole.VIEWER)


@pytest.fixture
def other_org_admin() -> SignedInUser:
    return SignedInUser(user_id=1, org_id=2, role=OrgRole.ADMIN)


@pytest.fixture
def store(db) -> PanelStore:
    return PanelStore(db)


@pytest.fixture
def catalog(store: PanelStore) -> LibraryPanelCatalog:
    return LibraryPanelCatalog(store, FolderAclGuard(store.db), SqlUserMetaResolver(store.db))


@pytest.fixture
def connections(store: PanelStore) -> ConnectionManager:
    return ConnectionManager(store, FolderAclGuard(store.db))


@pytest.fixture
def synchronizer(catalog: LibraryPanelCatalog, connections: ConnectionManager) -> DashboardSynchronizer:
    return DashboardSynchronizer(catalog, connections)


@pytest.fixture
def library_panel(catalog: LibraryPanelCatalog, admin: SignedInUser, panel_model: dict):
    return catalog.create(admin, folder_id=1, name="Text - Library Panel", model=panel_model)
