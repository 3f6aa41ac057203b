"""
Reports app models.

A ``Report`` is one recorded case: either a formal police report
("Laporan Polisi") or a public complaint ("Pengaduan Masyarakat").
Reports carry zero or more ``StolenVehicle`` rows, an append-only
``StatusUpdate`` history, and ``PersonnelAssignment`` links to the
officers handling them.

Status lifecycle::

    Proses ──▶ Selesai
      │           │
      └────┬──────┘
           ▼
        Dihapus   (soft delete; excluded from every active view)

Each status has its own set of allowed *status details* (sub-stages);
see ``ALLOWED_STATUS_DETAILS``.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.domain.exceptions import DomainError
from core.models import TimeStampedModel


# ═══════════════════════════════════════════════════════════════════
#  Choice enumerations
# ═══════════════════════════════════════════════════════════════════


class ReportType(models.TextChoices):
    LAPORAN_POLISI = "Laporan Polisi", "Laporan Polisi"
    PENGADUAN_MASYARAKAT = "Pengaduan Masyarakat", "Pengaduan Masyarakat"


class PoliceModel(models.TextChoices):
    A = "A", "Model A"
    B = "B", "Model B"
    C = "C", "Model C"


class SPKT(models.TextChoices):
    """Reporting office (Sentra Pelayanan Kepolisian Terpadu)."""

    POLRESTA_SORONG_KOTA = "Polresta Sorong Kota", "Polresta Sorong Kota"
    POLSEK_SORONG_KOTA = "Polsek Sorong Kota", "Polsek Sorong Kota"
    POLSEK_SORONG_MANOI = "Polsek Sorong Manoi", "Polsek Sorong Manoi"
    POLSEK_SORONG_TIMUR = "Polsek Sorong Timur", "Polsek Sorong Timur"
    POLSEK_SORONG_BARAT = "Polsek Sorong Barat", "Polsek Sorong Barat"
    POLSEK_KP3_LAUT = "Polsek KP3 Laut", "Polsek KP3 Laut"


class LocationType(models.TextChoices):
    JALAN_RAYA = "Jalan Raya", "Jalan Raya"
    PEMUKIMAN = "Pemukiman", "Pemukiman"
    PERKANTORAN = "Perkantoran", "Perkantoran"
    PUSAT_PERBELANJAAN = "Pusat Perbelanjaan", "Pusat Perbelanjaan"
    TEMPAT_IBADAH = "Tempat Ibadah", "Tempat Ibadah"
    SEKOLAH = "Sekolah", "Sekolah"
    LAINNYA = "Lainnya", "Lainnya"


class ReportStatus(models.TextChoices):
    PROSES = "Proses", "Proses"
    SELESAI = "Selesai", "Selesai"
    DIHAPUS = "Dihapus", "Dihapus"


class StatusDetail(models.TextChoices):
    LIDIK = "Lidik", "Lidik"
    SIDIK = "Sidik", "Sidik"
    P21 = "P21", "P21"
    DIVERSI = "Diversi", "Diversi"
    RESTORATIVE_JUSTICE = "Restorative Justice", "Restorative Justice"
    SP3 = "SP3", "SP3"
    DATA_DIHAPUS = "Data Dihapus", "Data Dihapus"


ALLOWED_STATUS_DETAILS: dict[str, tuple[str, ...]] = {
    ReportStatus.PROSES: (StatusDetail.LIDIK, StatusDetail.SIDIK),
    ReportStatus.SELESAI: (
        StatusDetail.P21,
        StatusDetail.DIVERSI,
        StatusDetail.RESTORATIVE_JUSTICE,
        StatusDetail.SP3,
    ),
    ReportStatus.DIHAPUS: (StatusDetail.DATA_DIHAPUS,),
}


def is_allowed_detail(status: str, detail: str) -> bool:
    return detail in ALLOWED_STATUS_DETAILS.get(status, ())


def format_report_number(report_type, number, year, police_model=None) -> str:
    """
    Full registration number, e.g. ``LP/B/123/2025`` or ``REG/45/2025``.
    """
    if report_type == ReportType.LAPORAN_POLISI:
        prefix = f"LP/{police_model}" if police_model else "LP"
    else:
        prefix = "REG"
    return f"{prefix}/{number}/{year}"


def format_short_number(report_type, number) -> str:
    """List-view number, e.g. ``LP-123`` or ``REG-45``."""
    prefix = "LP" if report_type == ReportType.LAPORAN_POLISI else "REG"
    return f"{prefix}-{number}"


# ═══════════════════════════════════════════════════════════════════
#  Models
# ═══════════════════════════════════════════════════════════════════


class Report(TimeStampedModel):
    """
    A recorded case.

    ``police_model`` is only meaningful for police reports and is kept
    ``NULL`` for public complaints.  ``assigned_unit`` is optional until an
    admin routes the report to a unit.
    """

    report_type = models.CharField(
        max_length=30,
        choices=ReportType.choices,
        verbose_name="Jenis Laporan",
    )
    report_year = models.PositiveSmallIntegerField(verbose_name="Tahun")
    report_number = models.CharField(max_length=20, verbose_name="Nomor")
    police_model = models.CharField(
        max_length=1,
        choices=PoliceModel.choices,
        null=True,
        blank=True,
        verbose_name="Model",
    )
    spkt = models.CharField(
        max_length=40,
        choices=SPKT.choices,
        verbose_name="SPKT",
    )
    report_date = models.DateTimeField(
        default=timezone.now,
        verbose_name="Tanggal Lapor",
    )
    reporter_name = models.CharField(max_length=150, verbose_name="Nama Pelapor")
    case_type = models.CharField(max_length=150, verbose_name="Jenis Kasus")

    # ── Incident ─────────────────────────────────────────────────────
    incident_date = models.DateField(verbose_name="Tanggal Kejadian")
    incident_time = models.TimeField(null=True, blank=True, verbose_name="Waktu Kejadian")
    incident_location = models.CharField(max_length=255, verbose_name="Lokasi Kejadian")
    location_type = models.CharField(
        max_length=30,
        choices=LocationType.choices,
        verbose_name="Tipe Lokasi",
    )
    district = models.CharField(max_length=50, verbose_name="Distrik")
    sub_district = models.CharField(max_length=50, verbose_name="Kelurahan")
    loss_amount = models.PositiveBigIntegerField(default=0, verbose_name="Kerugian (Rp)")

    # ── Workflow ─────────────────────────────────────────────────────
    status = models.CharField(
        max_length=10,
        choices=ReportStatus.choices,
        default=ReportStatus.PROSES,
        verbose_name="Status",
    )
    status_detail = models.CharField(
        max_length=30,
        choices=StatusDetail.choices,
        default=StatusDetail.LIDIK,
        verbose_name="Detail Status",
    )
    assigned_unit = models.ForeignKey(
        "organization.Unit",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="assigned_reports",
        verbose_name="Unit Penanganan",
    )
    assigned_personnel = models.ManyToManyField(
        "organization.Personnel",
        through="PersonnelAssignment",
        related_name="assigned_reports",
        blank=True,
        verbose_name="Personil Penanganan",
    )

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-report_date"]
        indexes = [
            models.Index(fields=["status"], name="report_status_idx"),
            models.Index(fields=["report_type", "report_date"], name="report_type_date_idx"),
        ]

    def __str__(self):
        return f"{self.display_number} — {self.case_type}"

    @property
    def display_number(self) -> str:
        return format_report_number(
            self.report_type, self.report_number, self.report_year, self.police_model,
        )

    @property
    def is_deleted(self) -> bool:
        return self.status == ReportStatus.DIHAPUS


class StolenVehicle(TimeStampedModel):
    """A vehicle reported stolen as part of a report."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="stolen_vehicles",
        verbose_name="Laporan",
    )
    vehicle_type = models.CharField(max_length=100, verbose_name="Jenis Kendaraan")
    frame_number = models.CharField(max_length=50, blank=True, default="", verbose_name="No. Rangka")
    engine_number = models.CharField(max_length=50, blank=True, default="", verbose_name="No. Mesin")

    class Meta:
        verbose_name = "Stolen Vehicle"
        verbose_name_plural = "Stolen Vehicles"
        ordering = ["id"]

    def __str__(self):
        return f"{self.vehicle_type} ({self.frame_number or '-'})"


class StatusUpdate(models.Model):
    """
    Immutable audit entry appended whenever a report's status changes.

    Rows are never edited or removed individually; they only disappear
    together with their report on a hard delete.  Not a ``TimeStampedModel``:
    ``updated_at`` is the time of the status change itself and is stamped
    on insert.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="status_history",
        verbose_name="Laporan",
    )
    status = models.CharField(max_length=10, choices=ReportStatus.choices, verbose_name="Status")
    status_detail = models.CharField(max_length=30, choices=StatusDetail.choices, verbose_name="Detail Status")
    description = models.TextField(blank=True, default="", verbose_name="Keterangan")
    updated_at = models.DateTimeField(default=timezone.now, verbose_name="Waktu")
    updated_by = models.CharField(max_length=150, verbose_name="Diperbarui Oleh")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="status_updates",
        verbose_name="Akun",
    )

    class Meta:
        verbose_name = "Status Update"
        verbose_name_plural = "Status Updates"
        ordering = ["updated_at", "id"]

    def __str__(self):
        return f"Report #{self.report_id}: {self.status}/{self.status_detail}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise DomainError("Riwayat status tidak dapat diubah.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise DomainError("Riwayat status tidak dapat dihapus.")


class PersonnelAssignment(TimeStampedModel):
    """Junction row linking a report to one of the officers handling it."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="personnel_assignments",
    )
    personnel = models.ForeignKey(
        "organization.Personnel",
        on_delete=models.CASCADE,
        related_name="report_assignments",
    )

    class Meta:
        verbose_name = "Personnel Assignment"
        verbose_name_plural = "Personnel Assignments"
        constraints = [
            models.UniqueConstraint(
                fields=["report", "personnel"],
                name="unique_report_personnel_assignment",
            ),
        ]

    def __str__(self):
        return f"Report #{self.report_id} ← Personnel #{self.personnel_id}"
