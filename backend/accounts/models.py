"""
Accounts app models.

Defines the custom ``User`` model that extends Django's ``AbstractUser``
with the two application roles (Admin, Operator), the operator's home
unit and the persisted UI theme preference.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    ADMIN = "Admin", "Admin"
    OPERATOR = "Operator", "Operator"


class User(AbstractUser):
    """
    Login account of the case-management system.

    Login is supported via either ``username`` or ``email`` together with
    the password.

    * **Admin** accounts see every report and manage units, personnel and
      operator accounts.
    * **Operator** accounts are created from a personnel record and
      inherit that personnel's unit; they see reports assigned to it.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.OPERATOR,
        verbose_name="Peran",
    )
    unit = models.ForeignKey(
        "organization.Unit",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="operators",
        verbose_name="Unit",
    )
    prefers_dark_theme = models.BooleanField(
        default=False,
        verbose_name="Tema Gelap",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def is_admin_role(self) -> bool:
        return self.is_superuser or self.role == UserRole.ADMIN

    @property
    def unit_name(self) -> str | None:
        return self.unit.name if self.unit_id else None
