"""
Tests for scope predicates and the ScopeRegistry.
"""
import uuid

import pytest

from heritage_rbac.schemas.subject import Subject, Target
from heritage_rbac.services import scopes


class Artifact:
    def __init__(self, museum=None, owner=None):
        self.museum = museum
        self.owner = owner


class TestFieldAccess:

    def test_reads_mappings_and_objects(self):
        assert scopes.read_field({"museum": "m1"}, "museum") == "m1"
        assert scopes.read_field(Artifact(museum="m1"), "museum") == "m1"

    def test_reads_aliases(self):
        assert scopes.read_field({"museumId": "m1"}, "museum_id") == "m1"
        assert scopes.read_field({"_id": "u1"}, "id") == "u1"
        assert scopes.read_field(Subject(_id="u1", role="visitor"), "id") == "u1"

    def test_missing_field_is_none(self):
        assert scopes.read_field(None, "museum") is None
        assert scopes.read_field({}, "museum") is None
        assert scopes.read_field(object(), "museum") is None

    def test_ids_compare_by_string_form(self):
        value = uuid.uuid4()
        assert scopes.same_id(value, str(value)) is True
        assert scopes.same_id(7, "7") is True
        assert scopes.same_id(None, None) is False
        assert scopes.same_id("a", None) is False

    def test_embedded_reference(self):
        assert scopes.same_id({"_id": "m1", "name": "National Museum"}, "m1") is True


class TestBuiltInPredicates:

    def test_own_matches_admin_or_owner(self):
        subject = {"id": "u1", "role": "museum_admin"}
        assert scopes.own(subject, {"admin": "u1"}) is True
        assert scopes.own(subject, Artifact(owner="u1")) is True
        assert scopes.own(subject, {"admin": "u2", "owner": "u3"}) is False
        assert scopes.own(subject, None) is False

    def test_own_requires_subject_id(self):
        assert scopes.own({"role": "museum_admin"}, {"admin": None, "owner": None}) is False
        assert scopes.own({"role": "museum_admin"}, {}) is False

    def test_own_artifacts(self):
        subject = Subject(id="u1", role="museum_admin", museum_id="m1")
        assert scopes.own_artifacts(subject, Target(museum="m1")) is True
        assert scopes.own_artifacts(subject, Target(museum="m2")) is False
        assert scopes.own_artifacts({"role": "museum_admin"}, {"museum": "m1"}) is False

    def test_first_level_only_for_museum_admin(self):
        target = {"museum": "m1"}
        assert scopes.first_level({"role": "museum_admin", "museumId": "m1"}, target) is True
        assert scopes.first_level({"role": "museum", "museumId": "m1"}, target) is False
        assert scopes.first_level({"role": "super_admin", "museumId": "m1"}, target) is False

    def test_final_only_for_super_admin(self):
        assert scopes.final({"role": "super_admin"}, {}) is True
        assert scopes.final({"role": "admin"}, {}) is False

    def test_museum_staff_without_roster(self):
        predicate = scopes.museum_staff(None)
        assert predicate({"id": "u-admin-1"}, {"id": "u-staff-1"}) is False

    def test_museum_staff_with_roster(self, roster):
        predicate = scopes.museum_staff(roster)
        assert predicate({"id": "u-admin-1"}, {"id": "u-staff-1"}) is True
        assert predicate({"id": "u-admin-1"}, {"id": "u-staff-3"}) is False
        assert predicate({"role": "museum_admin"}, {"id": "u-staff-1"}) is False


class TestScopeRegistry:

    def test_default_scopes(self):
        registry = scopes.default_scopes()
        assert registry.names() == {
            "own",
            "museum_staff",
            "own_artifacts",
            "first_level",
            "initial",
            "final",
        }

    def test_with_scope_returns_new_registry(self):
        registry = scopes.default_scopes()
        extended = registry.with_scope("own_museum", scopes.own_artifacts)
        assert "own_museum" in extended
        assert "own_museum" not in registry
        assert len(extended) == len(registry) + 1

    def test_without_scope(self):
        registry = scopes.default_scopes().without_scope("final")
        assert registry.get("final") is None

    @pytest.mark.parametrize("name", ["", None, "all", "public"])
    def test_rejects_invalid_names(self, name):
        with pytest.raises(ValueError):
            scopes.ScopeRegistry().with_scope(name, scopes.final)

    def test_rejects_non_callable(self):
        with pytest.raises(ValueError, match="must be callable"):
            scopes.ScopeRegistry({"own": "yes"})
