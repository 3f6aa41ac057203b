"""
Organization app models.

Defines the organisational sub-divisions of the investigative unit
(``Unit``) and the officers working in them (``Personnel``).  A personnel
record may be linked to one login account; that account is what turns an
officer into an *Operator* of their home unit.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class Unit(TimeStampedModel):
    """
    Organisational sub-division (e.g. "Unit Ranmor", "Polsek Sorong Barat").

    Referenced by ``Personnel.unit``, ``Report.assigned_unit`` and by the
    operator account's home unit.  A unit that is still referenced cannot
    be deleted.
    """

    name = models.CharField(
        max_length=150,
        unique=True,
        verbose_name="Nama Unit",
    )

    class Meta:
        verbose_name = "Unit"
        verbose_name_plural = "Units"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Personnel(TimeStampedModel):
    """
    An officer belonging to a home unit.

    ``user`` is the optional linked login account (created through the
    admin-only *create account* operation).  Deleting a personnel record
    also deletes that account.
    """

    name = models.CharField(max_length=150, verbose_name="Nama")
    rank = models.CharField(max_length=50, verbose_name="Pangkat")
    unit = models.ForeignKey(
        Unit,
        on_delete=models.PROTECT,
        related_name="personnel",
        verbose_name="Unit",
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="personnel",
        verbose_name="Akun Login",
    )

    class Meta:
        verbose_name = "Personnel"
        verbose_name_plural = "Personnel"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["unit"], name="personnel_unit_idx"),
        ]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self) -> str:
        """Rank and name, e.g. ``"BRIPKA Andi"``."""
        return f"{self.rank} {self.name}".strip()

    @property
    def email(self) -> str | None:
        return self.user.email if self.user_id else None
