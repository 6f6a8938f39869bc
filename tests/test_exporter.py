"""
Tests for the hierarchy exporter / reconciler.

Runs exports against the in-memory GitHub from conftest and asserts on both the
aggregated results and the recorded remote calls.
"""

import logging

import pytest

from realm_sync.app.config import Settings
from realm_sync.core.exceptions import (
    RemotePermissionDeniedError,
    RemoteTransientError,
    ValidationError,
)
from realm_sync.core.hierarchy import HierarchyNode
from realm_sync.core.services.hierarchy_sync import HierarchyExporter, HierarchyImporter


def _tree(node_dict, *org_children, org_name="Acme", org_id="org-1"):
    return HierarchyNode.from_dict(
        node_dict("0", "SupremeEntity", "Structured Enterprise", children=[
            node_dict(org_id, "SovereignBranch", org_name, parent="0", children=list(org_children)),
        ])
    )


@pytest.fixture()
def scenario_tree(node_dict):
    """Acme -> SD Engineering -> Entity service-a."""
    return _tree(
        node_dict,
        node_dict("sd-1", "SubordinateDivision", "Engineering", parent="org-1", children=[
            node_dict("e-1", "Entity", "service-a", parent="sd-1"),
        ]),
    )


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_tree(self, fake_remote, test_settings):
        with pytest.raises(ValidationError, match="Hierarchy data is required"):
            await HierarchyExporter(fake_remote, test_settings).export(None)
        assert fake_remote.calls == []

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected_before_any_call(self, fake_remote, test_settings, node_dict):
        tree = _tree(
            node_dict,
            node_dict("x", "SubordinateDivision", "Ministry A", parent="org-1"),
            node_dict("x", "SubordinateDivision", "Ministry B", parent="org-1"),
        )
        with pytest.raises(ValidationError, match="Duplicate node IDs"):
            await HierarchyExporter(fake_remote, test_settings).export(tree)
        assert fake_remote.calls == []


class TestScenarios:
    @pytest.mark.asyncio
    async def test_scenario_a_fresh_team_and_repo(self, fake_remote, test_settings, scenario_tree):
        fake_remote.add_org("Acme")

        results = await HierarchyExporter(fake_remote, test_settings).export(scenario_tree)

        assert results.errors == []
        assert results.updated.orgs == 1
        assert results.created.teams == 1
        assert results.created.repos == 1
        assert fake_remote.calls_to("grant_team_repo_permission") == [
            ("Acme", "engineering", "service-a", "admin")
        ]

    @pytest.mark.asyncio
    async def test_scenario_b_reexport_only_updates(self, fake_remote, test_settings, scenario_tree):
        fake_remote.add_org("Acme")
        exporter = HierarchyExporter(fake_remote, test_settings)
        await exporter.export(scenario_tree)
        fake_remote.calls.clear()

        results = await exporter.export(scenario_tree)

        assert results.created.to_dict() == {"orgs": 0, "teams": 0, "repos": 0}
        assert results.updated.to_dict() == {"orgs": 1, "teams": 1, "repos": 1}
        assert results.errors == []
        assert fake_remote.calls_to("grant_team_repo_permission") == []

    @pytest.mark.asyncio
    async def test_scenario_c_entity_under_root(self, fake_remote, test_settings, node_dict):
        tree = HierarchyNode.from_dict(
            node_dict("0", "SupremeEntity", "Structured Enterprise", children=[
                node_dict("e-1", "Entity", "stray", parent="0"),
            ])
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert len(results.errors) == 1
        assert "stray" in results.errors[0]
        assert "owning organization" in results.errors[0]
        assert fake_remote.calls == []


class TestOrganizations:
    @pytest.mark.asyncio
    async def test_org_profile_updated(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")

        await HierarchyExporter(fake_remote, test_settings).export(_tree(node_dict))

        assert fake_remote.calls_to("update_organization") == [
            ("Acme", {"name": "Acme", "description": "Sovereign Branch: Acme"})
        ]

    @pytest.mark.asyncio
    async def test_missing_org_is_never_created_but_children_processed(
        self, fake_remote, test_settings, node_dict
    ):
        tree = _tree(
            node_dict,
            node_dict("sd-1", "SubordinateDivision", "Engineering", parent="org-1"),
            org_name="Ghost",
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.errors[0] == "Cannot create organization Ghost - may require manual creation"
        assert results.updated.orgs == 0
        # The team was still attempted
        assert fake_remote.calls_to("create_team") == [("Ghost", "Engineering", None)]
        assert len(results.errors) == 2

    @pytest.mark.asyncio
    async def test_org_update_failure_still_recurses(self, fake_remote, test_settings, scenario_tree):
        fake_remote.add_org("Acme")
        fake_remote.fail(
            "update_organization", "Acme",
            RemotePermissionDeniedError("update_organization Acme failed (403): Must be an owner")
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(scenario_tree)

        assert results.errors == [
            "Error processing organization Acme: update_organization Acme failed (403): Must be an owner"
        ]
        assert results.created.teams == 1
        assert results.created.repos == 1


class TestTeams:
    @pytest.mark.asyncio
    async def test_materialized_team_is_updated(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")
        fake_remote.add_team("Acme", "Ministry of Finance", team_id=7)
        tree = _tree(node_dict, node_dict("team-7", "SubordinateDivision", "Ministry of Finance", parent="org-1"))

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.updated.teams == 1
        assert fake_remote.calls_to("update_team") == [("Acme", "ministry-of-finance", None)]
        assert fake_remote.calls_to("create_team") == []
        assert fake_remote.teams["Acme"]["ministry-of-finance"]["description"] == "Team type: SubordinateDivision"

    @pytest.mark.asyncio
    async def test_materialized_team_missing_remotely_is_created(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")
        tree = _tree(node_dict, node_dict("team-7", "InterGovOrg", "Trade Alliance", parent="org-1"))

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.created.teams == 1
        assert results.updated.teams == 0
        assert results.errors == []

    @pytest.mark.asyncio
    async def test_nested_new_teams_reference_parent_created_in_same_run(
        self, fake_remote, test_settings, node_dict
    ):
        fake_remote.add_org("Acme")
        tree = _tree(
            node_dict,
            node_dict("sd-1", "SubordinateDivision", "Ministry of Trade", parent="org-1", children=[
                node_dict("cg-1", "CooperativeGroup", "Farmers Cooperative", parent="sd-1"),
            ]),
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        ministry = fake_remote.teams["Acme"]["ministry-of-trade"]
        cooperative = fake_remote.teams["Acme"]["farmers-cooperative"]
        assert results.created.teams == 2
        assert cooperative["parent"]["id"] == ministry["id"]

    @pytest.mark.asyncio
    async def test_child_of_failed_team_is_not_created_at_org_level(
        self, fake_remote, test_settings, node_dict
    ):
        fake_remote.add_org("Acme")
        fake_remote.fail("create_team", "Ministry of Trade", RemoteTransientError("create_team timed out"))
        tree = _tree(
            node_dict,
            node_dict("sd-1", "SubordinateDivision", "Ministry of Trade", parent="org-1", children=[
                node_dict("cg-1", "CooperativeGroup", "Farmers Cooperative", parent="sd-1", children=[
                    node_dict("e-1", "Entity", "grain-ledger", parent="cg-1"),
                ]),
            ]),
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.errors == [
            "Error processing team Ministry of Trade: create_team timed out",
            "Error processing team Farmers Cooperative: "
            "Parent team Ministry of Trade has no resolved remote identity",
        ]
        assert [args[1] for args in fake_remote.calls_to("create_team")] == ["Ministry of Trade"]
        # The unresolved team's subtree is skipped entirely
        assert fake_remote.calls_to("get_repository") == []
        assert fake_remote.calls_to("create_repository") == []
        assert results.created.repos == 0

    @pytest.mark.asyncio
    async def test_remote_failure_is_logged_with_node_position(
        self, fake_remote, test_settings, scenario_tree, caplog
    ):
        fake_remote.add_org("Acme")
        fake_remote.fail("create_repository", "service-a", RemoteTransientError("create_repository timed out"))

        with caplog.at_level(logging.WARNING, logger="realm_sync.core.services.hierarchy_sync.exporter"):
            await HierarchyExporter(fake_remote, test_settings).export(scenario_tree)

        record = next(r for r in caplog.records if "service-a" in r.getMessage())
        assert record.node_id == "e-1"
        assert record.path == "/0/org-1/sd-1/e-1"
        assert record.depth == 3


class TestRepositories:
    @pytest.mark.asyncio
    async def test_existing_repo_is_updated_without_grant(self, fake_remote, test_settings, scenario_tree):
        fake_remote.add_org("Acme")
        fake_remote.add_repo("Acme", "service-a")

        results = await HierarchyExporter(fake_remote, test_settings).export(scenario_tree)

        assert results.updated.repos == 1
        assert results.created.repos == 0
        assert fake_remote.calls_to("grant_team_repo_permission") == []

    @pytest.mark.asyncio
    async def test_created_repo_uses_configured_visibility_and_permission(self, fake_remote, scenario_tree):
        fake_remote.add_org("Acme")
        settings = Settings(environment="test", new_repo_visibility="internal", team_repo_permission="push")

        await HierarchyExporter(fake_remote, settings).export(scenario_tree)

        assert fake_remote.calls_to("create_repository") == [("Acme", "service-a", "internal")]
        assert fake_remote.calls_to("grant_team_repo_permission") == [
            ("Acme", "engineering", "service-a", "push")
        ]
        assert fake_remote.repos["Acme"]["service-a"]["description"] == settings.managed_repo_description

    @pytest.mark.asyncio
    async def test_probe_failure_does_not_create(self, fake_remote, test_settings, scenario_tree):
        fake_remote.add_org("Acme")
        fake_remote.fail("get_repository", "service-a", RemoteTransientError("get_repository timed out"))

        results = await HierarchyExporter(fake_remote, test_settings).export(scenario_tree)

        assert results.errors == ["Error processing repo service-a: get_repository timed out"]
        assert fake_remote.calls_to("create_repository") == []

    @pytest.mark.asyncio
    async def test_repo_children_are_never_visited(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")
        tree = _tree(
            node_dict,
            node_dict("sd-1", "SubordinateDivision", "Engineering", parent="org-1", children=[
                node_dict("e-1", "Entity", "service-a", parent="sd-1", children=[
                    node_dict("e-2", "Entity", "hidden", parent="e-1"),
                ]),
            ]),
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.errors == []
        assert all("hidden" not in args for _, args in fake_remote.calls)


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_constraint_violation_skips_subtree_only(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")
        tree = _tree(
            node_dict,
            node_dict("sb-2", "SovereignBranch", "Nested Org", parent="org-1", children=[
                node_dict("sd-9", "SubordinateDivision", "Shadow Ministry", parent="sb-2", children=[
                    node_dict("e-9", "Entity", "shadow-repo", parent="sd-9"),
                ]),
            ]),
            node_dict("sd-1", "SubordinateDivision", "Engineering", parent="org-1"),
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert len(results.errors) == 1
        assert results.errors[0].startswith("Error processing organization Nested Org:")
        touched = [arg for _, args in fake_remote.calls for arg in args]
        assert "Nested Org" not in touched
        assert "Shadow Ministry" not in touched
        assert "shadow-repo" not in touched
        assert results.created.teams == 1

    @pytest.mark.asyncio
    async def test_repo_directly_under_org_is_a_constraint_violation(
        self, fake_remote, test_settings, node_dict
    ):
        fake_remote.add_org("Acme")
        tree = _tree(node_dict, node_dict("e-1", "Entity", "loose-repo", parent="org-1"))

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.errors == [
            "Error processing repo loose-repo: Invalid parent node type for repository: SovereignBranch"
        ]
        assert fake_remote.calls_to("get_repository") == []

    @pytest.mark.asyncio
    async def test_unknown_variant_isolated(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")
        tree = _tree(
            node_dict,
            node_dict("g-1", "Galaxy", "Andromeda", parent="org-1", children=[
                node_dict("sd-2", "SubordinateDivision", "Star Ministry", parent="g-1"),
            ]),
            node_dict("sd-1", "SubordinateDivision", "Engineering", parent="org-1"),
        )

        results = await HierarchyExporter(fake_remote, test_settings).export(tree)

        assert results.errors == ["Unknown node type: Galaxy"]
        assert [args[1] for args in fake_remote.calls_to("create_team")] == ["Engineering"]

    @pytest.mark.asyncio
    async def test_input_tree_is_not_mutated(self, fake_remote, test_settings, scenario_tree):
        fake_remote.add_org("Acme")
        before = scenario_tree.to_dict()

        await HierarchyExporter(fake_remote, test_settings).export(scenario_tree)

        assert scenario_tree.to_dict() == before


class TestProperties:
    @pytest.mark.asyncio
    async def test_idempotence(self, fake_remote, test_settings, node_dict):
        fake_remote.add_org("Acme")
        fake_remote.add_team("Acme", "Ministry of Finance", team_id=7)
        tree = _tree(
            node_dict,
            node_dict("team-7", "SubordinateDivision", "Ministry of Finance", parent="org-1", children=[
                node_dict("eic-1", "EnterpriseIntegrationClass", "Ledger Class", parent="team-7", children=[
                    node_dict("e-1", "Entity", "ledger", parent="eic-1"),
                ]),
                node_dict("e-2", "Entity", "budget", parent="team-7"),
            ]),
            node_dict("e-3", "Entity", "misplaced", parent="org-1"),
        )
        exporter = HierarchyExporter(fake_remote, test_settings)

        first = await exporter.export(tree)
        second = await exporter.export(tree)

        assert first.total_created > 0
        assert second.created.to_dict() == {"orgs": 0, "teams": 0, "repos": 0}
        assert set(second.errors) <= set(first.errors)

    @pytest.mark.asyncio
    async def test_round_trip(self, fake_remote, node_dict):
        fake_remote.add_org("Acme")
        fake_remote.add_org("Globex")
        fake_remote.add_team("Acme", "Ministry of Finance")
        fake_remote.add_team("Acme", "Tax Department", parent_slug="ministry-of-finance")
        fake_remote.add_team("Globex", "Trade Alliance")
        fake_remote.add_repo("Acme", "ledger", team_slug="tax-department")
        settings = Settings(environment="test", import_include_repositories=True)

        tree = await HierarchyImporter(fake_remote, settings).import_hierarchy()
        results = await HierarchyExporter(fake_remote, settings).export(tree)

        assert results.errors == []
        assert results.created.to_dict() == {"orgs": 0, "teams": 0, "repos": 0}
        assert results.updated.to_dict() == {"orgs": 2, "teams": 3, "repos": 1}
