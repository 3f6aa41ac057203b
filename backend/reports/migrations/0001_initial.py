import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

REPORT_STATUS_CHOICES = [("Proses", "Proses"), ("Selesai", "Selesai"), ("Dihapus", "Dihapus")]
STATUS_DETAIL_CHOICES = [
    ("Lidik", "Lidik"),
    ("Sidik", "Sidik"),
    ("P21", "P21"),
    ("Diversi", "Diversi"),
    ("Restorative Justice", "Restorative Justice"),
    ("SP3", "SP3"),
    ("Data Dihapus", "Data Dihapus"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("organization", "0002_personnel_user"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "report_type",
                    models.CharField(
                        choices=[
                            ("Laporan Polisi", "Laporan Polisi"),
                            ("Pengaduan Masyarakat", "Pengaduan Masyarakat"),
                        ],
                        max_length=30,
                        verbose_name="Jenis Laporan",
                    ),
                ),
                ("report_year", models.PositiveSmallIntegerField(verbose_name="Tahun")),
                ("report_number", models.CharField(max_length=20, verbose_name="Nomor")),
                (
                    "police_model",
                    models.CharField(
                        blank=True,
                        choices=[("A", "Model A"), ("B", "Model B"), ("C", "Model C")],
                        max_length=1,
                        null=True,
                        verbose_name="Model",
                    ),
                ),
                (
                    "spkt",
                    models.CharField(
                        choices=[
                            ("Polresta Sorong Kota", "Polresta Sorong Kota"),
                            ("Polsek Sorong Kota", "Polsek Sorong Kota"),
                            ("Polsek Sorong Manoi", "Polsek Sorong Manoi"),
                            ("Polsek Sorong Timur", "Polsek Sorong Timur"),
                            ("Polsek Sorong Barat", "Polsek Sorong Barat"),
                            ("Polsek KP3 Laut", "Polsek KP3 Laut"),
                        ],
                        max_length=40,
                        verbose_name="SPKT",
                    ),
                ),
                ("report_date", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Tanggal Lapor")),
                ("reporter_name", models.CharField(max_length=150, verbose_name="Nama Pelapor")),
                ("case_type", models.CharField(max_length=150, verbose_name="Jenis Kasus")),
                ("incident_date", models.DateField(verbose_name="Tanggal Kejadian")),
                ("incident_time", models.TimeField(blank=True, null=True, verbose_name="Waktu Kejadian")),
                ("incident_location", models.CharField(max_length=255, verbose_name="Lokasi Kejadian")),
                (
                    "location_type",
                    models.CharField(
                        choices=[
                            ("Jalan Raya", "Jalan Raya"),
                            ("Pemukiman", "Pemukiman"),
                            ("Perkantoran", "Perkantoran"),
                            ("Pusat Perbelanjaan", "Pusat Perbelanjaan"),
                            ("Tempat Ibadah", "Tempat Ibadah"),
                            ("Sekolah", "Sekolah"),
                            ("Lainnya", "Lainnya"),
                        ],
                        max_length=30,
                        verbose_name="Tipe Lokasi",
                    ),
                ),
                ("district", models.CharField(max_length=50, verbose_name="Distrik")),
                ("sub_district", models.CharField(max_length=50, verbose_name="Kelurahan")),
                ("loss_amount", models.PositiveBigIntegerField(default=0, verbose_name="Kerugian (Rp)")),
                (
                    "status",
                    models.CharField(
                        choices=REPORT_STATUS_CHOICES,
                        default="Proses",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                (
                    "status_detail",
                    models.CharField(
                        choices=STATUS_DETAIL_CHOICES,
                        default="Lidik",
                        max_length=30,
                        verbose_name="Detail Status",
                    ),
                ),
                (
                    "assigned_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assigned_reports",
                        to="organization.unit",
                        verbose_name="Unit Penanganan",
                    ),
                ),
            ],
            options={
                "verbose_name": "Report",
                "verbose_name_plural": "Reports",
                "ordering": ["-report_date"],
                "indexes": [
                    models.Index(fields=["status"], name="report_status_idx"),
                    models.Index(fields=["report_type", "report_date"], name="report_type_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PersonnelAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "personnel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="report_assignments",
                        to="organization.personnel",
                    ),
                ),
                (
                    "report",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="personnel_assignments",
                        to="reports.report",
                    ),
                ),
            ],
            options={
                "verbose_name": "Personnel Assignment",
                "verbose_name_plural": "Personnel Assignments",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("report", "personnel"),
                        name="unique_report_personnel_assignment",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="report",
            name="assigned_personnel",
            field=models.ManyToManyField(
                blank=True,
                related_name="assigned_reports",
                through="reports.PersonnelAssignment",
                to="organization.personnel",
                verbose_name="Personil Penanganan",
            ),
        ),
        migrations.CreateModel(
            name="StolenVehicle",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("vehicle_type", models.CharField(max_length=100, verbose_name="Jenis Kendaraan")),
                ("frame_number", models.CharField(blank=True, default="", max_length=50, verbose_name="No. Rangka")),
                ("engine_number", models.CharField(blank=True, default="", max_length=50, verbose_name="No. Mesin")),
                (
                    "report",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stolen_vehicles",
                        to="reports.report",
                        verbose_name="Laporan",
                    ),
                ),
            ],
            options={
                "verbose_name": "Stolen Vehicle",
                "verbose_name_plural": "Stolen Vehicles",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="StatusUpdate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=REPORT_STATUS_CHOICES, max_length=10, verbose_name="Status")),
                (
                    "status_detail",
                    models.CharField(choices=STATUS_DETAIL_CHOICES, max_length=30, verbose_name="Detail Status"),
                ),
                ("description", models.TextField(blank=True, default="", verbose_name="Keterangan")),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Waktu")),
                ("updated_by", models.CharField(max_length=150, verbose_name="Diperbarui Oleh")),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="status_updates",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Akun",
                    ),
                ),
                (
                    "report",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="reports.report",
                        verbose_name="Laporan",
                    ),
                ),
            ],
            options={
                "verbose_name": "Status Update",
                "verbose_name_plural": "Status Updates",
                "ordering": ["updated_at", "id"],
            },
        ),
    ]
