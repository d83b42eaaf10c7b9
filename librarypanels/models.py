from sqlalchemy import Column, Integer, String, Enum, DateTime, Text, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base
from datetime import datetime
import enum

Base = declarative_base()

# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class OrgRole(str, enum.Enum):
    """Organization role of a signed-in user"""
    VIEWER = "Viewer"
    EDITOR = "Editor"
    ADMIN = "Admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]


class FolderPermission(str, enum.Enum):
    """Permission level granted by a folder ACL entry"""
    VIEW = "View"
    EDIT = "Edit"
    ADMIN = "Admin"

    @property
    def rank(self) -> int:
        return _PERMISSION_RANK[self]


_ROLE_RANK = {OrgRole.VIEWER: 1, OrgRole.EDITOR: 2, OrgRole.ADMIN: 4}
_PERMISSION_RANK = {FolderPermission.VIEW: 1, FolderPermission.EDIT: 2, FolderPermission.ADMIN: 4}

# ============================================================================
# CORE MODEL DEFINITIONS
# ============================================================================

class LibraryPanel(Base):
    """Reusable panel definition, stored independently of any dashboard"""
    __tablename__ = "library_panels"
    __table_args__ = (
        UniqueConstraint("org_id", "folder_id", "name", name="uq_library_panels_org_folder_name"),
        UniqueConstraint("org_id", "uid", name="uq_library_panels_org_uid"),
    )

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, nullable=False)
    folder_id = Column(Integer, nullable=False, default=0)  # 0 is the General folder
    uid = Column(String(40), nullable=False)
    name = Column(String(150), nullable=False)
    model = Column(Text, nullable=False)  # JSON object, see services.store

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(Integer, nullable=False)
    updated_by = Column(Integer, nullable=False)


class LibraryPanelConnection(Base):
    """Link asserting that a dashboard embeds a library panel"""
    __tablename__ = "library_panel_connections"
    __table_args__ = (
        UniqueConstraint(
            "org_id", "library_panel_uid", "dashboard_id",
            name="uq_library_panel_connections_org_uid_dashboard",
        ),
        Index("idx_library_panel_connections_dashboard", "org_id", "dashboard_id"),
    )

    id = Column(Integer, primary_key=True)  # creation order
    org_id = Column(Integer, nullable=False)
    library_panel_uid = Column(String(40), nullable=False)
    dashboard_id = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(Integer, nullable=False)


# ============================================================================
# SUPPORTING TABLES (identity + folder ACL)
# ============================================================================

class User(Base):
    """User record used to resolve createdBy/updatedBy display metadata"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    login = Column(String, unique=True, nullable=False)
    email = Column(String, nullable=False)
    name = Column(String)


class Folder(Base):
    """Dashboard folder that library panels live in"""
    __tablename__ = "folders"
    __table_args__ = (
        UniqueConstraint("org_id", "uid", name="uq_folders_org_uid"),
    )

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, nullable=False)
    uid = Column(String(40), nullable=False)
    title = Column(String, nullable=False)


class FolderAcl(Base):
    """Role based permission entry on a folder"""
    __tablename__ = "folder_acl"

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, nullable=False)
    folder_id = Column(Integer, nullable=False)
    role = Column(Enum(OrgRole), nullable=False)
    permission = Column(Enum(FolderPermission), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
