from __future__ import annotations

import copy

import pytest

from librarypanels.errors import HeaderNameMissing, HeaderUIDMissing, LibraryPanelNotFound
from librarypanels.services.synchronizer import iter_panels, referenced_uids


def grid(x: int, y: int = 0) -> dict:
    return {"h": 6, "w": 6, "x": x, "y": y}


def plain_panel(panel_id: int = 1) -> dict:
    return {"id": panel_id, "gridPos": grid(0)}


def library_ref(library_panel, panel_id: int = 2, **extra) -> dict:
    panel = {
        "id": panel_id,
        "gridPos": grid(6),
        "libraryPanel": {"uid": library_panel.uid, "name": library_panel.name},
    }
    panel.update(extra)
    return panel


def hydrated_fields() -> dict:
    return {"datasource": "${DS_GDEV-TESTDATA}", "title": "Text - Library Panel", "type": "text"}


# ============================================================================
# TREE WALK
# ============================================================================

def test_iter_panels_visits_nested_rows_depth_first() -> None:
    document = {
        "panels": [
            {"id": 1},
            {"id": 2, "type": "row", "panels": [{"id": 3}, {"id": 4, "panels": [{"id": 5}]}]},
            "not a panel",
            {"id": 6},
        ]
    }
    assert [panels[index]["id"] for panels, index in iter_panels(document["panels"])] == [1, 2, 3, 4, 5, 6]


def test_iter_panels_tolerates_missing_panels() -> None:
    assert list(iter_panels(None)) == []
    assert list(iter_panels({"panels": []})) == []


def test_referenced_uids_deduplicates_in_order() -> None:
    document = {
        "panels": [
            {"libraryPanel": {"uid": "b", "name": "B"}},
            {"type": "row", "panels": [{"libraryPanel": {"uid": "a", "name": "A"}}]},
            {"libraryPanel": {"uid": "b", "name": "B"}},
        ]
    }
    assert referenced_uids(document) == ["b", "a"]


def test_referenced_uids_rejects_non_object_header() -> None:
    with pytest.raises(HeaderUIDMissing):
        referenced_uids({"panels": [{"libraryPanel": "abc"}]})


# ============================================================================
# HYDRATE
# ============================================================================

def test_hydrate_copies_library_panel_model(synchronizer, connections, catalog, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {"panels": [plain_panel(), library_ref(library_panel)]}

    synchronizer.hydrate(admin, 1, document)

    expected_meta = catalog.get(admin, library_panel.uid).meta.to_wire()
    assert expected_meta["connectedDashboards"] == 1
    assert document == {
        "panels": [
            plain_panel(),
            {
                "id": 2,
                "gridPos": grid(6),
                **hydrated_fields(),
                "libraryPanel": {
                    "uid": library_panel.uid,
                    "name": "Text - Library Panel",
                    "meta": expected_meta,
                },
            },
        ]
    }


def test_hydrate_meta_uses_wire_names(synchronizer, connections, viewer, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {"panels": [library_ref(library_panel)]}

    synchronizer.hydrate(viewer, 1, document)

    meta = document["panels"][0]["libraryPanel"]["meta"]
    assert meta["canEdit"] is False
    assert meta["createdBy"]["name"] == "user_in_db"
    assert meta["createdBy"]["avatarUrl"].startswith("/avatar/")
    assert set(meta) == {"canEdit", "connectedDashboards", "created", "updated", "createdBy", "updatedBy"}


def test_hydrate_without_uid_fails_and_leaves_document(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {
        "panels": [
            library_ref(library_panel, panel_id=1),
            {"id": 2, "gridPos": grid(6), "libraryPanel": {"name": library_panel.name}},
        ]
    }
    before = copy.deepcopy(document)

    with pytest.raises(HeaderUIDMissing):
        synchronizer.hydrate(admin, 1, document)
    assert document == before


def test_hydrate_unconnected_panel_degrades_gracefully(synchronizer, admin, library_panel) -> None:
    document = {"panels": [plain_panel(), library_ref(library_panel)]}

    synchronizer.hydrate(admin, 1, document)

    panel = document["panels"][1]
    assert panel["libraryPanel"] == {"uid": library_panel.uid, "name": library_panel.name}
    assert panel["type"] == f'Name: "{library_panel.name}", UID: "{library_panel.uid}"'
    assert panel["id"] == 2
    assert panel["gridPos"] == grid(6)


def test_hydrate_panel_connected_elsewhere_is_unresolved(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 2, library_panel.uid)
    document = {"panels": [library_ref(library_panel)]}

    synchronizer.hydrate(admin, 1, document)

    assert "meta" not in document["panels"][0]["libraryPanel"]
    assert document["panels"][0]["type"].startswith("Name: ")


def test_hydrate_recurses_into_rows(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    nested = library_ref(library_panel, panel_id=4)
    document = {
        "panels": [
            {"id": 1, "type": "row", "panels": [{"id": 2, "type": "row", "panels": [nested]}]},
        ]
    }

    synchronizer.hydrate(admin, 1, document)

    hydrated = document["panels"][0]["panels"][0]["panels"][0]
    assert hydrated["id"] == 4
    assert hydrated["type"] == "text"
    assert hydrated["datasource"] == "${DS_GDEV-TESTDATA}"
    assert "meta" in hydrated["libraryPanel"]


def test_hydrate_document_without_library_panels_is_untouched(synchronizer, admin) -> None:
    document = {"panels": [plain_panel()], "title": "Plain"}
    assert synchronizer.hydrate(admin, 1, document) == {"panels": [plain_panel()], "title": "Plain"}


# ============================================================================
# CLEAN
# ============================================================================

def test_clean_keeps_only_placement_and_header(synchronizer, library_panel) -> None:
    document = {"panels": [plain_panel(), library_ref(library_panel, **hydrated_fields())]}

    synchronizer.clean(document)

    assert document == {"panels": [plain_panel(), library_ref(library_panel)]}


def test_clean_without_uid_fails(synchronizer, library_panel) -> None:
    document = {
        "panels": [
            {"id": 2, "gridPos": grid(6), "libraryPanel": {"name": library_panel.name}, **hydrated_fields()},
        ]
    }
    with pytest.raises(HeaderUIDMissing):
        synchronizer.clean(document)


def test_clean_without_name_fails_before_any_change(synchronizer, library_panel) -> None:
    document = {
        "panels": [
            library_ref(library_panel, panel_id=1, **hydrated_fields()),
            {"id": 2, "gridPos": grid(6), "libraryPanel": {"uid": library_panel.uid}, **hydrated_fields()},
        ]
    }
    before = copy.deepcopy(document)

    with pytest.raises(HeaderNameMissing):
        synchronizer.clean(document)
    assert document == before


def test_clean_after_hydrate_restores_header(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {"panels": [plain_panel(), {"type": "row", "panels": [library_ref(library_panel)]}]}

    synchronizer.hydrate(admin, 1, document)
    assert "meta" in document["panels"][1]["panels"][0]["libraryPanel"]

    synchronizer.clean(document)
    assert document["panels"][1]["panels"][0] == library_ref(library_panel)


# ============================================================================
# RECONCILE
# ============================================================================

def test_reconcile_connects_referenced_panels(synchronizer, connections, admin, library_panel) -> None:
    document = {"panels": [plain_panel(), library_ref(library_panel, **hydrated_fields())]}

    result = synchronizer.reconcile(admin, 1, document)

    assert result.connected == [library_panel.uid]
    assert result.disconnected == []
    assert connections.list_connected_dashboards(admin, library_panel.uid) == [1]


def test_reconcile_is_idempotent(synchronizer, connections, admin, library_panel) -> None:
    document = {"panels": [library_ref(library_panel)]}

    synchronizer.reconcile(admin, 1, document)
    second = synchronizer.reconcile(admin, 1, document)

    assert not second.changed
    assert connections.list_connected_dashboards(admin, library_panel.uid) == [1]


def test_reconcile_disconnects_unused_panels(
    synchronizer, connections, catalog, admin, library_panel, panel_model
) -> None:
    unused = catalog.create(admin, folder_id=1, name="Unused Library Panel", model=panel_model)
    connections.connect(admin, 1, unused.uid)
    connections.connect(admin, 2, unused.uid)

    result = synchronizer.reconcile(admin, 1, {"panels": [library_ref(library_panel)]})

    assert result.connected == [library_panel.uid]
    assert result.disconnected == [unused.uid]
    assert connections.list_connected_dashboards(admin, library_panel.uid) == [1]
    # dashboard 2 is outside the reconciled dashboard and keeps its link
    assert connections.list_connected_dashboards(admin, unused.uid) == [2]


def test_reconcile_without_uid_fails_before_changes(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {"panels": [{"id": 2, "gridPos": grid(6), "libraryPanel": {"name": library_panel.name}}]}

    with pytest.raises(HeaderUIDMissing):
        synchronizer.reconcile(admin, 1, document)
    assert connections.list_connected_dashboards(admin, library_panel.uid) == [1]


def test_reconcile_unknown_uid_rolls_back(synchronizer, connections, admin, library_panel) -> None:
    document = {
        "panels": [
            library_ref(library_panel, panel_id=1),
            {"id": 2, "gridPos": grid(6), "libraryPanel": {"uid": "unknown", "name": "Gone"}},
        ]
    }

    with pytest.raises(LibraryPanelNotFound):
        synchronizer.reconcile(admin, 1, document)
    assert connections.list_connected_dashboards(admin, library_panel.uid) == []


# ============================================================================
# DISCONNECT ALL
# ============================================================================

def test_disconnect_all_removes_dashboard_connections(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {"panels": [plain_panel(), library_ref(library_panel, **hydrated_fields())]}

    assert synchronizer.disconnect_all(admin, 1, document) == 1
    assert connections.list_connected_dashboards(admin, library_panel.uid) == []


def test_disconnect_all_ignores_document_contents(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    connections.connect(admin, 2, library_panel.uid)

    assert synchronizer.disconnect_all(admin, 1) == 1
    assert connections.list_connected_dashboards(admin, library_panel.uid) == [2]


def test_disconnect_all_validates_supplied_document(synchronizer, connections, admin, library_panel) -> None:
    connections.connect(admin, 1, library_panel.uid)
    document = {"panels": [{"id": 2, "libraryPanel": {"name": library_panel.name}}]}

    with pytest.raises(HeaderUIDMissing):
        synchronizer.disconnect_all(admin, 1, document)
    assert connections.list_connected_dashboards(admin, library_panel.uid) == [1]
