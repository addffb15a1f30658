import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse

User = get_user_model()


@pytest.mark.django_db
class TestAdminSuperuserOnly:
    def test_staff_but_not_superuser_blocked(self, client):
        user = User.objects.create_user(username="staff", email="s@example.com", password="StrongPass!234")
        user.is_staff = True
        user.is_superuser = False
        user.save()
        client.force_login(user)
        resp = client.get(reverse("admin:index"))
        assert resp.status_code in (302, 403)

    def test_superuser_allowed(self, client):
        root = User.objects.create_superuser("root", "root@example.com", "StrongPass!234")
        assert root.role == User.Role.ADMIN
        client.force_login(root)
        resp = client.get(reverse("admin:index"))
        assert resp.status_code == 200
