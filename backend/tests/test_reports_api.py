"""
Integration tests for the reports API.

Scope in this file:
- POST/GET/PATCH/DELETE /api/reports/ (admin CRUD, soft delete, purge)
- role scoping of the list and detail endpoints
- POST /api/reports/{id}/assign-unit/, assign-personnel/, update-status/
- GET /api/reports/{id}/history/
- GET /api/vehicles/
- snapshot invalidation after mutations
"""

from __future__ import annotations

from datetime import datetime

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User, UserRole
from core.constants import SOFT_DELETE_HISTORY_NOTE
from organization.models import Personnel, Unit
from reports.models import (
    PersonnelAssignment,
    Report,
    ReportStatus,
    StatusDetail,
    StatusUpdate,
    StolenVehicle,
)

PASSWORD = "ReportsFlow!Pass42"


def _report_payload(**overrides) -> dict:
    payload = {
        "report_type": "Laporan Polisi",
        "report_year": 2025,
        "report_number": "123",
        "police_model": "B",
        "spkt": "Polresta Sorong Kota",
        "report_date": "2025-03-10T09:00:00+09:00",
        "reporter_name": "Yohanes Kambu",
        "case_type": "Curanmor",
        "incident_date": "2025-03-09",
        "incident_time": "21:30",
        "incident_location": "Jl. Basuki Rahmat KM 10",
        "location_type": "Jalan Raya",
        "district": "Sorong",
        "sub_district": "Remu",
        "loss_amount": 15_000_000,
        "stolen_vehicles": [
            {"vehicle_type": "Honda Beat", "frame_number": "MH1JM8116KK", "engine_number": "JM81E1"},
        ],
    }
    payload.update(overrides)
    return payload


def _make_report(*, unit=None, number="1", case_type="Curanmor", reporter="Pelapor", when=None, **extra) -> Report:
    return Report.objects.create(
        report_type="Laporan Polisi",
        report_year=2025,
        report_number=number,
        police_model="B",
        spkt="Polresta Sorong Kota",
        report_date=when or timezone.make_aware(datetime(2025, 3, 10, 9, 0)),
        reporter_name=reporter,
        case_type=case_type,
        incident_date="2025-03-09",
        incident_location="Jl. Ahmad Yani",
        location_type="Jalan Raya",
        district="Sorong",
        sub_district="Remu",
        assigned_unit=unit,
        **extra,
    )


class ReportsApiTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.unit_ranmor = Unit.objects.create(name="Unit Ranmor")
        cls.unit_jatanras = Unit.objects.create(name="Unit Jatanras")

        cls.admin = User.objects.create_user(
            username="admin_reskrim", email="admin@reskrim.local", password=PASSWORD, role=UserRole.ADMIN,
        )
        cls.operator_ranmor = User.objects.create_user(
            username="op_ranmor", email="ranmor@reskrim.local", password=PASSWORD,
            role=UserRole.OPERATOR, unit=cls.unit_ranmor,
        )
        cls.operator_jatanras = User.objects.create_user(
            username="op_jatanras", email="jatanras@reskrim.local", password=PASSWORD,
            role=UserRole.OPERATOR, unit=cls.unit_jatanras,
        )

        cls.andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=cls.unit_ranmor)
        cls.budi = Personnel.objects.create(name="Budi", rank="BRIGPOL", unit=cls.unit_ranmor)
        cls.citra = Personnel.objects.create(name="Citra", rank="BRIPDA", unit=cls.unit_jatanras)

    def setUp(self):
        self.client = APIClient()

    def _login(self, user: User) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.username, "password": PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def _list_ids(self, **params) -> list[int]:
        resp = self.client.get(reverse("reports:report-list"), params)
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        return [row["id"] for row in resp.data["results"]]


class TestReportCreateAndEdit(ReportsApiTestCase):

    def test_admin_creates_report_with_vehicles_and_history(self):
        self._login(self.admin)
        resp = self.client.post(reverse("reports:report-list"), _report_payload(), format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["display_number"], "LP/B/123/2025")
        self.assertEqual(resp.data["status"], ReportStatus.PROSES)
        self.assertEqual(resp.data["status_detail"], StatusDetail.LIDIK)
        self.assertEqual(resp.data["vehicle_count"], 1)
        self.assertEqual(resp.data["stolen_vehicles"][0]["vehicle_type"], "Honda Beat")
        self.assertEqual(len(resp.data["status_history"]), 1)
        self.assertEqual(resp.data["status_history"][0]["description"], "Laporan dibuat oleh Admin.")
        self.assertEqual(resp.data["status_history"][0]["updated_by"], "Admin (admin_reskrim)")

    def test_public_complaint_drops_police_model(self):
        self._login(self.admin)
        resp = self.client.post(
            reverse("reports:report-list"),
            _report_payload(report_type="Pengaduan Masyarakat", report_number="45", police_model="A"),
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertIsNone(resp.data["police_model"])
        self.assertEqual(resp.data["display_number"], "REG/45/2025")

    def test_police_report_requires_model(self):
        self._login(self.admin)
        resp = self.client.post(reverse("reports:report-list"), _report_payload(police_model=None), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("police_model", resp.data)

    def test_sub_district_must_belong_to_district(self):
        self._login(self.admin)
        resp = self.client.post(
            reverse("reports:report-list"),
            _report_payload(district="Sorong Barat", sub_district="Remu"),
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sub_district", resp.data)

    def test_report_number_must_be_numeric(self):
        self._login(self.admin)
        resp = self.client.post(reverse("reports:report-list"), _report_payload(report_number="12A"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("report_number", resp.data)

    def test_operator_cannot_create(self):
        self._login(self.operator_ranmor)
        resp = self.client.post(reverse("reports:report-list"), _report_payload(), format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Report.objects.exists())

    def test_admin_edit_replaces_vehicles(self):
        report = _make_report(unit=self.unit_ranmor)
        StolenVehicle.objects.create(report=report, vehicle_type="Yamaha Mio")
        self._login(self.admin)

        resp = self.client.patch(
            reverse("reports:report-detail", args=[report.pk]),
            {
                "reporter_name": "Maria Kalami",
                "stolen_vehicles": [{"vehicle_type": "Honda Vario"}, {"vehicle_type": "Suzuki Satria"}],
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["reporter_name"], "Maria Kalami")
        self.assertEqual(
            [v["vehicle_type"] for v in resp.data["stolen_vehicles"]],
            ["Honda Vario", "Suzuki Satria"],
        )
        self.assertEqual(report.stolen_vehicles.count(), 2)

    def test_operator_cannot_edit(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)
        resp = self.client.patch(
            reverse("reports:report-detail", args=[report.pk]), {"reporter_name": "X"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)


class TestReportScoping(ReportsApiTestCase):

    def test_admin_sees_everything(self):
        r1 = _make_report(unit=self.unit_ranmor, number="1")
        r2 = _make_report(unit=self.unit_jatanras, number="2")
        r3 = _make_report(unit=None, number="3")
        self._login(self.admin)
        self.assertCountEqual(self._list_ids(), [r1.pk, r2.pk, r3.pk])

    def test_operator_sees_own_unit_only(self):
        mine = _make_report(unit=self.unit_ranmor, number="1")
        other = _make_report(unit=self.unit_jatanras, number="2")
        _make_report(unit=None, number="3")
        self._login(self.operator_ranmor)

        self.assertEqual(self._list_ids(), [mine.pk])
        resp = self.client.get(reverse("reports:report-detail", args=[other.pk]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_operator_sees_report_handled_by_own_officer(self):
        report = _make_report(unit=self.unit_ranmor)
        PersonnelAssignment.objects.create(report=report, personnel=self.andi)
        self.andi.unit = self.unit_jatanras
        self.andi.save()

        self._login(self.operator_jatanras)
        self.assertEqual(self._list_ids(), [report.pk])

    def test_status_filter_search_and_ordering(self):
        older = _make_report(
            unit=self.unit_ranmor, number="7", reporter="Agus",
            when=timezone.make_aware(datetime(2025, 1, 5, 8, 0)),
        )
        newer = _make_report(
            unit=self.unit_ranmor, number="30", reporter="Benny", case_type="Penipuan",
            when=timezone.make_aware(datetime(2025, 2, 5, 8, 0)),
        )
        done = _make_report(
            unit=self.unit_ranmor, number="12", reporter="Carla",
            status=ReportStatus.SELESAI, status_detail=StatusDetail.P21,
        )
        self._login(self.admin)

        self.assertEqual(self._list_ids(), [done.pk, newer.pk, older.pk])
        self.assertEqual(self._list_ids(status="Selesai"), [done.pk])
        self.assertEqual(self._list_ids(search="penipuan"), [newer.pk])
        self.assertEqual(self._list_ids(search="LP-7"), [older.pk])
        self.assertEqual(self._list_ids(ordering="report_number"), [older.pk, done.pk, newer.pk])

    def test_invalid_ordering_rejected(self):
        self._login(self.admin)
        resp = self.client.get(reverse("reports:report-list"), {"ordering": "password"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_is_paginated_by_twenty(self):
        for i in range(25):
            _make_report(unit=self.unit_ranmor, number=str(i + 1))
        self._login(self.admin)
        resp = self.client.get(reverse("reports:report-list"))
        self.assertEqual(resp.data["count"], 25)
        self.assertEqual(len(resp.data["results"]), 20)

    def test_unauthenticated_rejected(self):
        resp = self.client.get(reverse("reports:report-list"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


class TestReportWorkflow(ReportsApiTestCase):

    def test_assign_unit_drops_officers_of_other_units(self):
        report = _make_report(unit=self.unit_ranmor)
        PersonnelAssignment.objects.create(report=report, personnel=self.andi)
        PersonnelAssignment.objects.create(report=report, personnel=self.citra)
        self._login(self.admin)

        resp = self.client.post(
            reverse("reports:report-assign-unit", args=[report.pk]),
            {"unit_id": self.unit_jatanras.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["assigned_unit_name"], "Unit Jatanras")
        self.assertEqual(resp.data["assigned_personnel_ids"], [self.citra.pk])

    def test_assign_unit_unknown_unit(self):
        report = _make_report()
        self._login(self.admin)
        resp = self.client.post(
            reverse("reports:report-assign-unit", args=[report.pk]), {"unit_id": 9999}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_operator_assigns_own_personnel(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)

        resp = self.client.post(
            reverse("reports:report-assign-personnel", args=[report.pk]),
            {"personnel_ids": [self.andi.pk, self.budi.pk]},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertCountEqual(resp.data["assigned_personnel_ids"], [self.andi.pk, self.budi.pk])
        names = {p["name"] for p in resp.data["assigned_personnel"]}
        self.assertEqual(names, {"BRIPKA Andi", "BRIGPOL Budi"})

    def test_operator_cannot_assign_other_units_personnel(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)
        resp = self.client.post(
            reverse("reports:report-assign-personnel", args=[report.pk]),
            {"personnel_ids": [self.citra.pk]},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(PersonnelAssignment.objects.exists())

    def test_operator_of_other_unit_cannot_touch_report(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_jatanras)
        resp = self.client.post(
            reverse("reports:report-update-status", args=[report.pk]),
            {"status": "Proses", "status_detail": "Sidik"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_status_appends_history(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)

        for payload in (
            {"status": "Proses", "status_detail": "Sidik", "description": "Naik sidik."},
            {"status": "Selesai", "status_detail": "P21", "description": "Berkas lengkap."},
        ):
            resp = self.client.post(
                reverse("reports:report-update-status", args=[report.pk]), payload, format="json",
            )
            self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)

        self.assertEqual(resp.data["status"], "Selesai")
        self.assertEqual(resp.data["status_detail"], "P21")

        history = self.client.get(reverse("reports:report-history", args=[report.pk])).data
        self.assertEqual([h["status_detail"] for h in history], ["Sidik", "P21"])
        self.assertEqual(history[-1]["updated_by"], "Operator (op_ranmor)")
        timestamps = [h["updated_at"] for h in history]
        self.assertEqual(timestamps, sorted(timestamps))

    def test_update_status_time_is_set_by_server(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)

        before = timezone.now()
        resp = self.client.post(
            reverse("reports:report-update-status", args=[report.pk]),
            {"status": "Proses", "status_detail": "Sidik", "updated_at": "2001-01-01T00:00:00Z"},
            format="json",
        )
        after = timezone.now()
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)

        entry = StatusUpdate.objects.get(report=report)
        self.assertTrue(before <= entry.updated_at <= after)

    def test_status_history_rows_are_immutable(self):
        from core.domain.exceptions import DomainError

        report = _make_report(unit=self.unit_ranmor)
        entry = StatusUpdate.objects.create(
            report=report, status="Proses", status_detail="Sidik", updated_by="Admin",
        )
        self.assertIsNotNone(entry.updated_at)

        entry.description = "diubah"
        with self.assertRaises(DomainError):
            entry.save()
        with self.assertRaises(DomainError):
            entry.delete()
        self.assertEqual(StatusUpdate.objects.get(pk=entry.pk).description, "")

    def test_update_status_rejects_mismatched_detail(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)
        resp = self.client.post(
            reverse("reports:report-update-status", args=[report.pk]),
            {"status": "Selesai", "status_detail": "Lidik"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(StatusUpdate.objects.filter(report=report).exists())

    def test_admin_cannot_update_status(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.admin)
        resp = self.client.post(
            reverse("reports:report-update-status", args=[report.pk]),
            {"status": "Proses", "status_detail": "Sidik"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_soft_delete_hides_report_and_records_history(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.admin)

        resp = self.client.delete(reverse("reports:report-detail", args=[report.pk]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

        report.refresh_from_db()
        self.assertEqual(report.status, ReportStatus.DIHAPUS)
        self.assertEqual(report.status_history.last().description, SOFT_DELETE_HISTORY_NOTE)
        self.assertEqual(self._list_ids(), [])
        resp = self.client.get(reverse("reports:report-detail", args=[report.pk]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_purge_removes_everything(self):
        report = _make_report(unit=self.unit_ranmor)
        StolenVehicle.objects.create(report=report, vehicle_type="Honda Beat")
        PersonnelAssignment.objects.create(report=report, personnel=self.andi)
        StatusUpdate.objects.create(report=report, status="Proses", status_detail="Lidik", updated_by="Admin (x)")
        self._login(self.admin)

        resp = self.client.post(reverse("reports:report-purge", args=[report.pk]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Report.objects.filter(pk=report.pk).exists())
        self.assertFalse(StolenVehicle.objects.exists())
        self.assertFalse(StatusUpdate.objects.exists())
        self.assertTrue(Personnel.objects.filter(pk=self.andi.pk).exists())

    def test_operator_cannot_purge(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)
        resp = self.client.post(reverse("reports:report-purge", args=[report.pk]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Report.objects.filter(pk=report.pk).exists())


class TestSnapshotFreshness(ReportsApiTestCase):

    def test_mutation_invalidates_other_users_snapshot(self):
        report = _make_report(unit=self.unit_ranmor)
        self._login(self.operator_ranmor)
        self.assertEqual(self._list_ids(), [report.pk])

        admin_client = APIClient()
        admin_client.force_authenticate(self.admin)
        resp = admin_client.post(
            reverse("reports:report-assign-unit", args=[report.pk]),
            {"unit_id": self.unit_jatanras.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        self.assertEqual(self._list_ids(), [])

    def test_failed_mutation_keeps_snapshot(self):
        from reports.cache import ReportSnapshotCache

        _make_report(unit=self.unit_ranmor)
        self._login(self.admin)
        self._list_ids()
        version = ReportSnapshotCache.current_version()

        resp = self.client.post(reverse("reports:report-list"), _report_payload(police_model=None), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = self.client.post(reverse("reports:report-purge", args=[9999]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

        self.assertEqual(ReportSnapshotCache.current_version(), version)
        self.assertIsNotNone(ReportSnapshotCache.get(self.admin.pk))

    def test_refresh_rebuilds_snapshot(self):
        _make_report(unit=self.unit_ranmor)
        self._login(self.admin)
        resp = self.client.post(reverse("reports:report-refresh"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["report_count"], 1)
        self.assertEqual(resp.data["lookup_failures"], 0)


class TestVehicleList(ReportsApiTestCase):

    def test_admin_lists_vehicles_with_top_types(self):
        r1 = _make_report(unit=self.unit_ranmor, number="1")
        r2 = _make_report(unit=self.unit_jatanras, number="2")
        StolenVehicle.objects.create(report=r1, vehicle_type="Honda Beat", frame_number="F1")
        StolenVehicle.objects.create(report=r2, vehicle_type="Honda Beat", frame_number="F2")
        StolenVehicle.objects.create(report=r2, vehicle_type="Yamaha NMAX", frame_number="F3")
        self._login(self.admin)

        resp = self.client.get(reverse("reports:vehicle-list"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["count"], 3)
        self.assertEqual(resp.data["top_vehicle_types"][0], {"label": "Honda Beat", "count": 2})

        resp = self.client.get(reverse("reports:vehicle-list"), {"search": "nmax"})
        self.assertEqual([row["frame_number"] for row in resp.data["results"]], ["F3"])

    def test_operator_forbidden(self):
        self._login(self.operator_ranmor)
        resp = self.client.get(reverse("reports:vehicle-list"))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
