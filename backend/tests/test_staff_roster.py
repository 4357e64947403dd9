import uuid

from heritage_rbac.infra.staff_roster import InMemoryStaffRoster


class TestInMemoryStaffRoster:

    def test_staff_of_administered_museum(self, roster):
        assert roster.is_staff_of("u-admin-1", "u-staff-1") is True
        assert roster.is_staff_of("u-admin-1", "u-staff-2") is True

    def test_staff_of_another_museum(self, roster):
        assert roster.is_staff_of("u-admin-1", "u-staff-3") is False
        assert roster.is_staff_of("u-admin-2", "u-staff-1") is False

    def test_unknown_admin_or_missing_ids(self, roster):
        assert roster.is_staff_of("u-nobody", "u-staff-1") is False
        assert roster.is_staff_of(None, "u-staff-1") is False
        assert roster.is_staff_of("u-admin-1", None) is False

    def test_admin_of_several_museums(self):
        roster = InMemoryStaffRoster(
            museum_admins={"m1": "a1", "m2": "a1"},
            museum_staff={"m1": ["s1"], "m2": ["s2"]},
        )
        assert roster.museums_of("a1") == {"m1", "m2"}
        assert roster.is_staff_of("a1", "s2") is True

    def test_ids_compare_by_string_form(self):
        admin_id, staff_id = uuid.uuid4(), uuid.uuid4()
        roster = InMemoryStaffRoster(
            museum_admins={"m1": admin_id},
            museum_staff={"m1": [staff_id]},
        )
        assert roster.is_staff_of(str(admin_id), str(staff_id)) is True
        assert roster.is_staff_of(admin_id, staff_id) is True
