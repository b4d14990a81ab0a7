"""
Tests for the version registry (clivm/registry.py).
"""

import pytest
from unittest.mock import patch

from clivm.errors import FilesystemError, InvalidName, InvalidVersion, NotFound, StoreError
from clivm.registry import Registry
from clivm.store import RecordStore, ToolRecord
from clivm.symlinks import SymlinkManager


@pytest.fixture
def registry(tmp_path):
    return Registry(RecordStore(tmp_path / "data"), SymlinkManager(tmp_path / "bin"))


def link_of(registry, name):
    return registry.links.target(name)


class TestAddVersion:
    """Tests for Registry.add_version."""

    def test_add_new_tool(self, registry):
        """First add creates one record with the version active and one link."""
        result = registry.add_version("tool", "1.0")

        assert result.created is True
        record = registry.store.load("tool")
        assert record.versions == ["1.0"]
        assert record.active == 0
        assert [r.id for r in registry.store.list()] == ["tool"]
        assert link_of(registry, "tool") == "1.0"

    def test_add_to_existing_appends(self, registry):
        """Adding to an existing tool appends without activating."""
        registry.add_version("tool", "1.0")
        result = registry.add_version("tool", "2.0")

        assert result.created is False
        assert result.duplicate is False
        record = registry.store.load("tool")
        assert record.versions == ["1.0", "2.0"]
        assert record.active == 0
        assert link_of(registry, "tool") == "1.0"

    def test_add_keeps_switched_active(self, registry):
        """Appending leaves a non-zero active index alone."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")
        registry.switch_version("tool", "2.0")
        registry.add_version("tool", "3.0")

        record = registry.store.load("tool")
        assert record.active == 1
        assert link_of(registry, "tool") == "2.0"

    def test_add_duplicate_is_noop(self, registry):
        """Adding a registered version again changes nothing."""
        registry.add_version("tool", "1.0")
        result = registry.add_version("tool", "1.0")

        assert result.duplicate is True
        assert registry.store.load("tool").versions == ["1.0"]

    def test_add_empty_version(self, registry):
        """An empty version is invalid."""
        with pytest.raises(InvalidVersion):
            registry.add_version("tool", "")
        assert registry.store.list() == []

    def test_add_invalid_name(self, registry):
        """A name that cannot be a link name is rejected before any write."""
        with pytest.raises(InvalidName):
            registry.add_version("a/b", "1.0")
        assert registry.store.list() == []

    def test_add_reserved_name(self, registry):
        """The name "all" cannot be registered as a tool."""
        registry.add_version("aaa", "1.0")
        with pytest.raises(InvalidName):
            registry.add_version("all", "2.0")
        assert registry.names() == ["aaa"]
        assert registry.store.load("aaa").versions == ["1.0"]

    def test_add_new_store_failure_removes_link(self, registry):
        """If the first record cannot be saved, the new link is taken back."""
        with patch.object(registry.store, "save", side_effect=StoreError("disk full")):
            with pytest.raises(StoreError):
                registry.add_version("tool", "1.0")

        assert link_of(registry, "tool") is None
        assert registry.store.exists("tool") is False

    def test_add_new_link_failure_writes_nothing(self, registry):
        """If the link cannot be created, no record is written."""
        with patch.object(registry.links, "activate", side_effect=FilesystemError("denied")):
            with pytest.raises(FilesystemError):
                registry.add_version("tool", "1.0")

        assert registry.store.exists("tool") is False


class TestSwitchVersion:
    """Tests for Registry.switch_version."""

    def test_switch(self, registry):
        """Switching updates the active index and the link."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")

        record = registry.switch_version("tool", "2.0")

        assert record.active == 1
        assert registry.store.load("tool").active == 1
        assert link_of(registry, "tool") == "2.0"

    def test_switch_to_active_is_idempotent(self, registry):
        """Switching to the active version keeps everything as is."""
        registry.add_version("tool", "1.0")
        registry.switch_version("tool", "1.0")
        assert registry.store.load("tool").active == 0
        assert link_of(registry, "tool") == "1.0"

    def test_switch_unknown_tool(self, registry):
        """Switching an unknown tool raises NotFound."""
        with pytest.raises(NotFound):
            registry.switch_version("tool", "1.0")

    def test_switch_unknown_version_leaves_state(self, registry):
        """Switching to an unregistered version fails and changes nothing."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")

        with pytest.raises(InvalidVersion):
            registry.switch_version("tool", "3.0")

        record = registry.store.load("tool")
        assert record.active == 0
        assert record.versions == ["1.0", "2.0"]
        assert link_of(registry, "tool") == "1.0"

    def test_switch_store_failure_restores_link(self, registry):
        """If the record cannot be saved, the link goes back to the old version."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")

        with patch.object(registry.store, "save", side_effect=StoreError("disk full")):
            with pytest.raises(StoreError):
                registry.switch_version("tool", "2.0")

        assert registry.store.load("tool").active == 0
        assert link_of(registry, "tool") == "1.0"

    def test_switch_link_failure_keeps_record(self, registry):
        """If the link cannot be updated, the record is not touched."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")

        with patch.object(registry.links, "activate", side_effect=FilesystemError("denied")):
            with pytest.raises(FilesystemError):
                registry.switch_version("tool", "2.0")

        assert registry.store.load("tool").active == 0

    def test_switch_symlink_error_keeps_link(self, registry):
        """A failing symlink call leaves both the record and the old link."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")

        with patch("clivm.symlinks.os.symlink", side_effect=OSError("read-only file system")):
            with pytest.raises(FilesystemError):
                registry.switch_version("tool", "2.0")

        assert registry.store.load("tool").active == 0
        assert link_of(registry, "tool") == "1.0"


class TestRemoveVersion:
    """Tests for Registry.remove_version."""

    def test_remove_last_version(self, registry):
        """Removing the only version deletes the record and the link."""
        registry.add_version("tool", "1.0")

        result = registry.remove_version("tool", "1.0")

        assert result.deleted is True
        assert registry.store.exists("tool") is False
        assert link_of(registry, "tool") is None

    def test_remove_non_active_after(self, registry):
        """Removing a version after the active one changes neither index nor link."""
        for version in ("1.0", "2.0", "3.0"):
            registry.add_version("tool", version)

        result = registry.remove_version("tool", "3.0")

        assert result.switched_to is None
        record = registry.store.load("tool")
        assert record.versions == ["1.0", "2.0"]
        assert record.active == 0
        assert link_of(registry, "tool") == "1.0"

    def test_remove_non_active_before(self, registry):
        """Removing a version before the active one keeps the same version active."""
        for version in ("1.0", "2.0", "3.0"):
            registry.add_version("tool", version)
        registry.switch_version("tool", "3.0")

        registry.remove_version("tool", "1.0")

        record = registry.store.load("tool")
        assert record.versions == ["2.0", "3.0"]
        assert record.active == 1
        assert record.active_version == "3.0"
        assert link_of(registry, "tool") == "3.0"

    def test_remove_active_falls_back_to_first(self, registry):
        """Removing the active version activates the first remaining one."""
        for version in ("1.0", "2.0", "3.0"):
            registry.add_version("tool", version)
        registry.switch_version("tool", "3.0")

        result = registry.remove_version("tool", "3.0")

        assert result.switched_to == "1.0"
        record = registry.store.load("tool")
        assert record.versions == ["1.0", "2.0"]
        assert record.active == 0
        assert link_of(registry, "tool") == "1.0"

    def test_remove_active_first_entry(self, registry):
        """Removing the active first entry activates the new first entry."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")

        result = registry.remove_version("tool", "1.0")

        assert result.switched_to == "2.0"
        assert registry.store.load("tool").versions == ["2.0"]
        assert link_of(registry, "tool") == "2.0"

    def test_remove_unknown_tool(self, registry):
        """Removing from an unknown tool raises NotFound."""
        with pytest.raises(NotFound):
            registry.remove_version("tool", "1.0")

    def test_remove_unknown_version(self, registry):
        """Removing an unregistered version raises InvalidVersion."""
        registry.add_version("tool", "1.0")
        with pytest.raises(InvalidVersion):
            registry.remove_version("tool", "2.0")
        assert registry.store.load("tool").versions == ["1.0"]

    def test_remove_last_delete_failure_restores_link(self, registry):
        """If the record cannot be deleted, the link is put back."""
        registry.add_version("tool", "1.0")

        with patch.object(registry.store, "delete", side_effect=StoreError("busy")):
            with pytest.raises(StoreError):
                registry.remove_version("tool", "1.0")

        assert registry.store.exists("tool") is True
        assert link_of(registry, "tool") == "1.0"

    def test_remove_active_store_failure_restores_link(self, registry):
        """If the fallback cannot be saved, the link keeps the removed-but-still-recorded version."""
        registry.add_version("tool", "1.0")
        registry.add_version("tool", "2.0")
        registry.switch_version("tool", "2.0")

        with patch.object(registry.store, "save", side_effect=StoreError("disk full")):
            with pytest.raises(StoreError):
                registry.remove_version("tool", "2.0")

        record = registry.store.load("tool")
        assert record.versions == ["1.0", "2.0"]
        assert record.active == 1
        assert link_of(registry, "tool") == "2.0"


class TestListVersions:
    """Tests for Registry.list_versions, names and current."""

    def test_list_all_empty(self, registry):
        """Listing all on an empty store is an empty result, not an error."""
        assert registry.list_versions() == []
        assert registry.list_versions("all") == []

    def test_list_all(self, registry):
        """Listing all returns every record."""
        registry.add_version("node", "18")
        registry.add_version("go", "1.21")
        assert [r.id for r in registry.list_versions()] == ["go", "node"]

    def test_list_one(self, registry):
        """Listing a name returns only that record."""
        registry.add_version("node", "18")
        registry.add_version("go", "1.21")
        records = registry.list_versions("node")
        assert len(records) == 1
        assert records[0].id == "node"

    def test_list_unknown(self, registry):
        """Listing an unknown name raises NotFound."""
        with pytest.raises(NotFound):
            registry.list_versions("node")

    def test_get_does_not_treat_all_as_every_tool(self, registry):
        """get looks up exactly one tool."""
        registry.add_version("aaa", "1.0")
        assert registry.get("aaa").versions == ["1.0"]
        with pytest.raises(InvalidName):
            registry.get("all")
        with pytest.raises(NotFound):
            registry.get("node")

    def test_names(self, registry):
        """names returns the registered tool ids."""
        registry.add_version("node", "18")
        assert registry.names() == ["node"]

    def test_current(self, registry):
        """current returns the active version."""
        registry.add_version("node", "18")
        registry.add_version("node", "20")
        registry.switch_version("node", "20")
        assert registry.current("node") == "20"

    def test_current_unknown(self, registry):
        """current on an unknown tool raises NotFound."""
        with pytest.raises(NotFound):
            registry.current("node")


class TestSync:
    """Tests for Registry.sync."""

    def test_sync_nothing_to_do(self, registry):
        """sync reports nothing when links match the records."""
        registry.add_version("node", "18")
        assert registry.sync() == []

    def test_sync_missing_link(self, registry):
        """A deleted link is recreated."""
        registry.add_version("node", "18")
        registry.links.deactivate("node")

        assert registry.sync() == ["node"]
        assert link_of(registry, "node") == "18"

    def test_sync_stale_link(self, registry):
        """A link pointing elsewhere is repointed to the active version."""
        registry.store.save(ToolRecord(id="node", versions=["16", "18"], active=1))
        registry.links.activate("node", "16")

        assert registry.sync() == ["node"]
        assert link_of(registry, "node") == "18"


class TestWorkedExample:
    """The full lifecycle of one tool."""

    def test_lifecycle(self, registry):
        """add, add, switch, remove active, remove last."""
        registry.add_version("tool", "1.0")
        assert registry.store.load("tool").to_dict() == {"id": "tool", "active": 0, "versions": ["1.0"]}
        assert link_of(registry, "tool") == "1.0"

        registry.add_version("tool", "2.0")
        record = registry.store.load("tool")
        assert record.versions == ["1.0", "2.0"]
        assert record.active == 0

        registry.switch_version("tool", "2.0")
        assert registry.store.load("tool").active == 1
        assert link_of(registry, "tool") == "2.0"

        registry.remove_version("tool", "2.0")
        record = registry.store.load("tool")
        assert record.versions == ["1.0"]
        assert record.active == 0
        assert link_of(registry, "tool") == "1.0"

        registry.remove_version("tool", "1.0")
        assert registry.store.exists("tool") is False
        assert link_of(registry, "tool") is None
