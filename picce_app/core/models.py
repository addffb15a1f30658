from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.contrib.auth.models import UserManager as DjangoUserManager
from django.db import models


class VisibilityMode(models.TextChoices):
    PUBLIC = "PUBLIC", "Public"
    AUTHENTICATED = "AUTHENTICATED", "Authenticated users only"
    RESTRICT = "RESTRICT", "Restricted to listed users and classrooms"


class Address(models.Model):
    city = models.CharField(max_length=255)
    state = models.CharField(max_length=255)
    country = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("city", "state", "country")
        verbose_name_plural = "addresses"

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.city}, {self.state}, {self.country}"


class Institution(models.Model):
    class Type(models.TextChoices):
        PRIMARY = "PRIMARY", "Primary"
        LOWER_SECONDARY = "LOWER_SECONDARY", "Lower secondary"
        UPPER_SECONDARY = "UPPER_SECONDARY", "Upper secondary"
        TERTIARY = "TERTIARY", "Tertiary"

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.TERTIARY)
    address = models.ForeignKey(
        Address, on_delete=models.SET_NULL, null=True, blank=True, related_name="institutions"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class UserManager(DjangoUserManager):
    use_in_migrations = True

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """Platform account carrying the privilege role used by every permission check."""

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Administrator"
        COORDINATOR = "COORDINATOR", "Coordinator"
        PUBLISHER = "PUBLISHER", "Publisher"
        APPLIER = "APPLIER", "Applier"
        USER = "USER", "User"
        GUEST = "GUEST", "Guest"

    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)
    institution = models.ForeignKey(
        Institution, on_delete=models.SET_NULL, null=True, blank=True, related_name="users"
    )
    creator = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="created_users"
    )
    accepted_terms = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    def __str__(self) -> str:  # pragma: no cover
        return self.username


class Classroom(models.Model):
    name = models.CharField(max_length=255)
    institution = models.ForeignKey(
        Institution, on_delete=models.CASCADE, related_name="classrooms"
    )
    users = models.ManyToManyField(User, blank=True, related_name="classrooms")
    creator = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="created_classrooms"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover
        return self.name
