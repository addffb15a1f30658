import pytest

from picce_app.core.exceptions import AuthorizationError, NotFoundError, SemanticError
from picce_app.core.models import Institution, User
from picce_app.core.permissions import (
    MANAGEABLE_ROLES,
    Principal,
    check_user_authorization,
    get_detailed_users,
    get_peer_user_actions,
    get_peer_user_roles,
    get_visible_user_fields,
    validate_hierarchy,
)

Role = User.Role


def principal(role, institution_id=None, id=1):
    return Principal(id=id, role=role, institution_id=institution_id)


class TestValidateHierarchy:
    def test_admin_role_is_never_assignable(self):
        for role in MANAGEABLE_ROLES:
            assert Role.ADMIN not in MANAGEABLE_ROLES[role]
        with pytest.raises(AuthorizationError):
            validate_hierarchy(principal(Role.ADMIN), Role.ADMIN, None)

    def test_cannot_assign_a_higher_role(self):
        with pytest.raises(AuthorizationError):
            validate_hierarchy(principal(Role.PUBLISHER, 1), Role.COORDINATOR, 1)

    def test_coordinator_may_create_publishers_in_own_institution(self):
        validate_hierarchy(principal(Role.COORDINATOR, 1), Role.PUBLISHER, 1)

    def test_cannot_place_users_in_another_institution(self):
        with pytest.raises(AuthorizationError):
            validate_hierarchy(principal(Role.COORDINATOR, 1), Role.USER, 2)

    def test_admin_may_place_users_anywhere(self):
        validate_hierarchy(principal(Role.ADMIN), Role.COORDINATOR, 2)

    def test_coordinator_needs_an_institution(self):
        with pytest.raises(SemanticError):
            validate_hierarchy(principal(Role.ADMIN), Role.COORDINATOR, None)

    def test_users_cannot_change_their_own_role(self):
        with pytest.raises(AuthorizationError):
            validate_hierarchy(principal(Role.COORDINATOR, 1, id=5), Role.USER, None, user_id=5)


@pytest.mark.django_db
class TestPeerUserActions:
    def setup_data(self):
        school = Institution.objects.create(name="School")
        other = Institution.objects.create(name="Other")
        coordinator = User.objects.create_user(username="coord", password="x", role=Role.COORDINATOR, institution=school)
        member = User.objects.create_user(username="member", password="x", role=Role.USER, institution=school)
        outsider = User.objects.create_user(username="outsider", password="x", role=Role.PUBLISHER, institution=other)
        admin = User.objects.create_user(username="root", password="x", role=Role.ADMIN)
        return coordinator, member, outsider, admin

    def test_coordinator_manages_institution_members(self):
        coordinator, member, _, _ = self.setup_data()
        actions = get_peer_user_actions(Principal.from_user(coordinator), get_detailed_users([member.id])[0])
        assert actions.to_get and actions.to_update and actions.to_delete

    def test_outsider_cannot_see_member(self):
        _, member, outsider, _ = self.setup_data()
        with pytest.raises(NotFoundError):
            check_user_authorization(Principal.from_user(outsider), [member.id], "get")

    def test_institution_member_may_read_but_not_update(self):
        coordinator, member, _, _ = self.setup_data()
        detailed = get_detailed_users([coordinator.id])[0]
        actions = get_peer_user_actions(Principal.from_user(member), detailed)
        assert actions.to_get
        with pytest.raises(AuthorizationError):
            check_user_authorization(Principal.from_user(member), [coordinator.id], "update")

    def test_admin_accounts_are_not_managed_by_peers(self):
        coordinator, _, _, admin = self.setup_data()
        actions = get_peer_user_actions(Principal.from_user(coordinator), get_detailed_users([admin.id])[0])
        assert not (actions.to_get or actions.to_update or actions.to_delete)

    def test_batches_are_all_or_nothing(self):
        coordinator, member, outsider, _ = self.setup_data()
        with pytest.raises(NotFoundError):
            check_user_authorization(Principal.from_user(coordinator), [member.id, outsider.id], "update")

    def test_users_and_guests_cannot_create_accounts(self):
        for role in (Role.USER, Role.GUEST):
            with pytest.raises(AuthorizationError):
                check_user_authorization(principal(role), [], "create")

    def test_full_fields_are_a_superset_of_base_fields(self):
        coordinator, member, _, _ = self.setup_data()
        detailed = get_detailed_users([member.id])[0]
        full = get_visible_user_fields(
            Principal.from_user(coordinator), get_peer_user_roles(Principal.from_user(coordinator), detailed)
        )
        peer = get_detailed_users([coordinator.id])[0]
        base = get_visible_user_fields(Principal.from_user(member), get_peer_user_roles(Principal.from_user(member), peer))
        assert base["id"] and not base["role"]
        assert all(full[key] for key, value in base.items() if value is True)
