"""
Wire-format models for library panels.

Field names are snake_case in Python and camelCase on the wire
(``orgId``, ``folderId``, ``avatarUrl``, ...).
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from librarypanels.models import OrgRole


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class SignedInUser(BaseModel):
    """Identity of the caller, resolved by the transport layer"""
    user_id: int
    org_id: int
    role: OrgRole = OrgRole.VIEWER


class UserMeta(BaseModel):
    """Display metadata for a user id"""
    name: str = ""
    avatar_url: str = ""


class LibraryPanelMetaUser(WireModel):
    id: int
    name: str
    avatar_url: str


class LibraryPanelMeta(WireModel):
    """Caller-relative metadata, recomputed on every read"""
    can_edit: bool
    connected_dashboards: int
    created: datetime
    updated: datetime
    created_by: LibraryPanelMetaUser
    updated_by: LibraryPanelMetaUser


class LibraryPanelDTO(WireModel):
    id: int
    org_id: int
    folder_id: int
    uid: str
    name: str
    model: Dict[str, Any]
    meta: LibraryPanelMeta


class CreateLibraryPanelCommand(WireModel):
    folder_id: int = 0
    name: str = Field(min_length=1)
    model: Dict[str, Any]


class PatchLibraryPanelCommand(WireModel):
    """Partial update; a field left as None keeps its stored value"""
    folder_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1)
    model: Optional[Dict[str, Any]] = None
