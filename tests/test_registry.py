"""Tests for ActivityRegistry."""

import pytest

from buildbar.activity.registry import ActivityRegistry
from buildbar.activity.stats import kind_stats
from buildbar.activity.types import ActivityKind, ResultKind
from buildbar.errors import FieldError


def assert_indexes_consistent(registry: ActivityRegistry) -> None:
    """Every open unit is in the flat index and in exactly one kind index."""
    for act_id, activity in registry.activities.items():
        owners = [kind for kind, rollup in registry.rollups.items() if act_id in rollup.units]
        assert owners == [activity.kind]
    for kind, rollup in registry.rollups.items():
        for act_id in rollup.units:
            assert act_id in registry.activities


class TestStartStop:
    """Tests for opening and closing units."""

    def test_start_adds_to_both_indexes(self, registry):
        """Test that a started unit is in the flat and per-kind index."""
        registry.start_unit(1, ActivityKind.BUILDS)
        registry.start_unit(2, ActivityKind.EVALUATE, "evaluating")

        assert 1 in registry
        assert 2 in registry
        assert len(registry) == 2
        assert 1 in registry.rollups[ActivityKind.BUILDS].units
        assert 2 in registry.rollups[ActivityKind.EVALUATE].units
        assert_indexes_consistent(registry)

    def test_stop_removes_from_both_indexes(self, registry):
        """Test that a stopped unit is in neither index."""
        registry.start_unit(1, ActivityKind.BUILDS)
        assert registry.stop_unit(1) is True

        assert 1 not in registry
        assert registry.rollups[ActivityKind.BUILDS].units == {}
        assert_indexes_consistent(registry)

    def test_stop_twice_is_noop(self, registry):
        """Test that a duplicate stop changes nothing."""
        registry.start_unit(1, ActivityKind.COPY_PATH)
        registry.update_result(1, ResultKind.PROGRESS, [10, 20, 0, 0])
        registry.stop_unit(1)
        rollup = registry.rollups[ActivityKind.COPY_PATH]
        before = (rollup.done, rollup.expected, rollup.failed)

        assert registry.stop_unit(1) is False
        assert (rollup.done, rollup.expected, rollup.failed) == before

    def test_stop_unknown_id(self, registry):
        """Test that stopping an id that was never started is tolerated."""
        assert registry.stop_unit(42) is False
        assert len(registry) == 0

    def test_restart_same_id_replaces_unit(self, registry):
        """Test that starting an open id closes the previous unit first."""
        registry.start_unit(1, ActivityKind.COPY_PATH)
        registry.update_result(1, ResultKind.PROGRESS, [5, 10, 0, 0])
        registry.start_unit(1, ActivityKind.FILE_TRANSFER, fields=["https://cache/x"])

        assert registry.get(1).kind == ActivityKind.FILE_TRANSFER
        assert registry.rollups[ActivityKind.COPY_PATH].units == {}
        assert registry.rollups[ActivityKind.COPY_PATH].done == 5
        assert_indexes_consistent(registry)

    def test_open_units_order(self, registry):
        """Test that open units iterate oldest first, or newest first on request."""
        for act_id in (3, 1, 2):
            registry.start_unit(act_id, ActivityKind.UNKNOWN)

        assert [a.act_id for a in registry.open_units()] == [3, 1, 2]
        assert [a.act_id for a in registry.open_units(newest_first=True)] == [2, 1, 3]

    def test_build_records_start_time(self, registry, clock):
        """Test that builds remember when they started."""
        registry.start_unit(1, ActivityKind.BUILD, fields=["/nix/store/h-foo.drv", "", 1, 1])
        assert registry.get(1).start_time == clock.now

    def test_malformed_fields_leave_registry_unchanged(self, registry):
        """Test that a FieldError on start does not register anything."""
        registry.start_unit(1, ActivityKind.BUILD, fields=["/nix/store/h-foo.drv", "", 1, 1])

        with pytest.raises(FieldError):
            registry.start_unit(1, ActivityKind.BUILD, fields=["/nix/store/h-bar.drv"])
        with pytest.raises(FieldError):
            registry.start_unit(2, ActivityKind.SUBSTITUTE, fields=[7, "https://cache"])

        assert len(registry) == 1
        assert registry.get(1).label.plain == "foo"


class TestLabels:
    """Tests for labels derived from kind-specific fields."""

    def test_build_label_single_round_local(self, registry):
        """Test a local single-round build shows only the name."""
        activity = registry.start_unit(1, ActivityKind.BUILD, fields=["foo", "", 1, 1])
        assert activity.label.plain == "foo"

    def test_build_label_remote_multi_round(self, registry):
        """Test machine and round are appended when relevant."""
        activity = registry.start_unit(1, ActivityKind.BUILD, fields=["foo", "remote1", 2, 3])
        label = activity.label.plain

        assert "foo" in label
        assert "on remote1" in label
        assert "(round 2/3)" in label

    def test_build_label_from_store_path(self, registry):
        """Test the hash prefix and .drv suffix are stripped."""
        activity = registry.start_unit(
            1, ActivityKind.BUILD, fields=["/nix/store/abc123-hello-2.10.drv", "", 1, 1]
        )
        assert activity.label.plain == "hello-2.10"
        assert activity.name == "hello"

    def test_substitute_label(self, registry):
        """Test substitutions name the path and its source."""
        activity = registry.start_unit(
            1, ActivityKind.SUBSTITUTE, fields=["/nix/store/abc-zlib-1.3", "https://cache.example"]
        )
        assert activity.label.plain == "zlib-1.3 from https://cache.example"
        assert activity.visible is False

    def test_query_path_info_label(self, registry):
        """Test path-info queries name the path and the substituter."""
        activity = registry.start_unit(
            1, ActivityKind.QUERY_PATH_INFO, fields=["/nix/store/abc-zlib-1.3", "https://cache"]
        )
        assert activity.label.plain == "querying zlib-1.3 on https://cache"

    def test_post_build_hook_label(self, registry):
        """Test post-build hooks are labelled with the derivation name."""
        activity = registry.start_unit(
            1, ActivityKind.POST_BUILD_HOOK, fields=["/nix/store/abc-hello-2.10.drv"]
        )
        assert activity.label.plain == "post-build hello-2.10"
        assert activity.name == "hello"

    def test_file_transfer_label(self, registry):
        """Test transfers are labelled with their URI."""
        activity = registry.start_unit(1, ActivityKind.FILE_TRANSFER, fields=["https://cache/nar/x"])
        assert activity.label.plain == "https://cache/nar/x"

    def test_other_kinds_keep_text(self, registry):
        """Test kinds without a field layout use the free text."""
        activity = registry.start_unit(1, ActivityKind.EVALUATE, "evaluating file")
        assert activity.label.plain == "evaluating file"


class TestIgnoreRules:
    """Tests for units whose progress is double-counted elsewhere."""

    def test_transfer_under_query_under_substitute_is_ignored(self, registry):
        """Test that a transfer two levels below a query is ignored."""
        registry.start_unit(1, ActivityKind.QUERY_PATH_INFO, fields=["/nix/store/a-x", "c"])
        registry.start_unit(2, ActivityKind.SUBSTITUTE, parent=1, fields=["/nix/store/a-x", "c"])
        transfer = registry.start_unit(3, ActivityKind.FILE_TRANSFER, parent=2, fields=["u"])

        assert transfer.ignored is True
        registry.update_result(3, ResultKind.PROGRESS, [50, 100, 1, 0])
        registry.update_result(3, ResultKind.SET_EXPECTED, [ActivityKind.FILE_TRANSFER, 100])

        stats = kind_stats(registry, ActivityKind.FILE_TRANSFER)
        assert (stats.done, stats.expected, stats.running, stats.failed) == (0, 0, 0, 0)

        registry.stop_unit(3)
        stats = kind_stats(registry, ActivityKind.FILE_TRANSFER)
        assert (stats.done, stats.expected) == (0, 0)

    def test_transfer_under_copy_path_is_ignored(self, registry):
        """Test that a transfer below a copy is ignored."""
        registry.start_unit(1, ActivityKind.COPY_PATH)
        transfer = registry.start_unit(2, ActivityKind.FILE_TRANSFER, parent=1, fields=["u"])
        assert transfer.ignored is True

    def test_copy_path_under_substitute_is_ignored_and_hidden(self, registry):
        """Test that a copy made by a substitution is ignored and not visible."""
        registry.start_unit(1, ActivityKind.SUBSTITUTE, fields=["/nix/store/a-x", "c"])
        copy = registry.start_unit(2, ActivityKind.COPY_PATH, parent=1)
        assert copy.ignored is True
        assert copy.visible is False

    def test_top_level_transfer_is_counted(self, registry):
        """Test that a transfer with no relevant ancestor counts."""
        transfer = registry.start_unit(1, ActivityKind.FILE_TRANSFER, fields=["u"])
        registry.update_result(1, ResultKind.PROGRESS, [30, 100, 5, 0])

        assert transfer.ignored is False
        assert transfer.visible is False
        stats = kind_stats(registry, ActivityKind.FILE_TRANSFER)
        assert (stats.done, stats.expected, stats.left) == (30, 100, 70)

    def test_missing_parent_stops_ancestor_walk(self, registry):
        """Test that a parent that is already gone ends the walk."""
        registry.start_unit(1, ActivityKind.SUBSTITUTE, fields=["/nix/store/a-x", "c"])
        registry.start_unit(2, ActivityKind.UNKNOWN, parent=1)
        registry.stop_unit(2)
        transfer = registry.start_unit(3, ActivityKind.FILE_TRANSFER, parent=2, fields=["u"])
        assert transfer.ignored is False

    def test_has_ancestor_survives_cycles(self, registry):
        """Test that a parent cycle does not loop forever."""
        registry.start_unit(1, ActivityKind.UNKNOWN, parent=2)
        registry.start_unit(2, ActivityKind.UNKNOWN, parent=1)
        assert registry.has_ancestor(ActivityKind.SUBSTITUTE, 1) is False


class TestResults:
    """Tests for result events."""

    def test_result_for_unknown_id(self, registry):
        """Test results for ids that are not open are ignored."""
        assert registry.update_result(9, ResultKind.PROGRESS, [1, 2, 0, 0]) is None
        assert registry.rollups == {}

    def test_progress_counters_never_decrease(self, registry):
        """Test that done and failed are monotonic per unit."""
        registry.start_unit(1, ActivityKind.BUILDS)
        registry.update_result(1, ResultKind.PROGRESS, [5, 10, 2, 1])
        registry.update_result(1, ResultKind.PROGRESS, [3, 12, 1, 0])

        activity = registry.get(1)
        assert (activity.done, activity.expected, activity.running, activity.failed) == (5, 12, 1, 1)

    def test_set_expected_replaces_previous_value(self, registry):
        """Test that a second set-expected from the same unit replaces the first."""
        registry.start_unit(1, ActivityKind.REALISE)
        registry.update_result(1, ResultKind.SET_EXPECTED, [ActivityKind.BUILD, 5])
        registry.update_result(1, ResultKind.SET_EXPECTED, [ActivityKind.BUILD, 2])

        assert registry.rollups[ActivityKind.BUILD].expected == 2
        assert registry.get(1).expected_by_kind == {ActivityKind.BUILD: 2}

    def test_set_expected_withdrawn_on_stop(self, registry):
        """Test that a unit's expected contribution is removed when it closes."""
        registry.start_unit(1, ActivityKind.REALISE)
        registry.start_unit(2, ActivityKind.REALISE)
        registry.update_result(1, ResultKind.SET_EXPECTED, [ActivityKind.COPY_PATH, 300])
        registry.update_result(2, ResultKind.SET_EXPECTED, [ActivityKind.COPY_PATH, 200])

        registry.stop_unit(1)
        assert registry.rollups[ActivityKind.COPY_PATH].expected == 200

    def test_stop_folds_counters_into_rollup(self, registry):
        """Test that closed units keep contributing to done and failed."""
        registry.start_unit(1, ActivityKind.BUILDS)
        registry.update_result(1, ResultKind.PROGRESS, [3, 4, 0, 1])
        registry.stop_unit(1)

        rollup = registry.rollups[ActivityKind.BUILDS]
        assert (rollup.done, rollup.failed) == (3, 1)
        stats = kind_stats(registry, ActivityKind.BUILDS)
        assert (stats.done, stats.failed) == (3, 1)

    def test_log_lines_and_phase(self, registry):
        """Test that build output updates the last line and phase."""
        registry.start_unit(1, ActivityKind.BUILD, fields=["foo", "", 1, 1])
        registry.update_result(1, ResultKind.BUILD_LOG_LINE, ["compiling main.c\n"])
        registry.update_result(1, ResultKind.BUILD_LOG_LINE, ["   "])
        registry.update_result(1, ResultKind.SET_PHASE, ["buildPhase"])

        activity = registry.get(1)
        assert activity.last_line.plain == "compiling main.c"
        assert activity.phase == "buildPhase"

    def test_global_counters(self, registry):
        """Test linking and path-verification counters."""
        registry.start_unit(1, ActivityKind.OPTIMISE_STORE)
        registry.update_result(1, ResultKind.FILE_LINKED, [4096, 8])
        registry.update_result(1, ResultKind.FILE_LINKED, [1024, 2])
        registry.update_result(1, ResultKind.UNTRUSTED_PATH, ["/nix/store/a-x"])
        registry.update_result(1, ResultKind.CORRUPTED_PATH, ["/nix/store/a-y"])

        assert registry.files_linked == 2
        assert registry.bytes_linked == 5120
        assert registry.untrusted_paths == 1
        assert registry.corrupted_paths == 1

    def test_remaining_sets(self, registry):
        """Test pending builds and substitutions are unioned across units."""
        registry.start_unit(1, ActivityKind.REALISE)
        registry.start_unit(2, ActivityKind.REALISE)
        registry.update_result(1, ResultKind.EXPECT_BUILD, ["/nix/store/a.drv"])
        registry.update_result(2, ResultKind.EXPECT_BUILD, ["/nix/store/a.drv"])
        registry.update_result(2, ResultKind.EXPECT_BUILD, ["/nix/store/b.drv"])
        registry.update_result(2, ResultKind.UNEXPECT_BUILD, ["/nix/store/b.drv"])
        registry.update_result(1, ResultKind.EXPECT_SUBSTITUTION, ["/nix/store/c"])

        builds, substitutions = registry.remaining()
        assert builds == {"/nix/store/a.drv"}
        assert substitutions == {"/nix/store/c"}

    def test_malformed_result_fields(self, registry):
        """Test that results with the wrong field types raise FieldError."""
        registry.start_unit(1, ActivityKind.BUILDS)
        with pytest.raises(FieldError):
            registry.update_result(1, ResultKind.PROGRESS, [1, "2", 0, 0])
        with pytest.raises(FieldError):
            registry.update_result(1, ResultKind.SET_PHASE, [])
