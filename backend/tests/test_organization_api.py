"""
Integration tests for the organization API (units, personnel and
operator accounts).
"""

from __future__ import annotations

from datetime import datetime

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User, UserRole
from organization.models import Personnel, Unit
from reports.models import PersonnelAssignment, Report, ReportStatus, StatusDetail

PASSWORD = "OrgFlow!Pass42"


class OrganizationApiTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.unit_ranmor = Unit.objects.create(name="Unit Ranmor")
        cls.unit_resmob = Unit.objects.create(name="Unit Resmob")
        cls.admin = User.objects.create_user(
            username="admin_org", email="admin.org@reskrim.local", password=PASSWORD, role=UserRole.ADMIN,
        )
        cls.operator = User.objects.create_user(
            username="op_org", email="op.org@reskrim.local", password=PASSWORD,
            role=UserRole.OPERATOR, unit=cls.unit_ranmor,
        )

    def setUp(self):
        self.client = APIClient()

    def _login(self, identifier: str, password: str = PASSWORD) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": identifier, "password": password},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")


class TestUnitEndpoints(OrganizationApiTestCase):

    def test_admin_creates_and_renames_unit(self):
        self._login(self.admin.username)
        resp = self.client.post(reverse("organization:unit-list"), {"name": "  Unit Jatanras  "}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["name"], "Unit Jatanras")
        self.assertEqual(resp.data["personnel_count"], 0)

        resp = self.client.patch(
            reverse("organization:unit-detail", args=[resp.data["id"]]),
            {"name": "Unit Jatanras Polresta"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["name"], "Unit Jatanras Polresta")

    def test_blank_name_rejected(self):
        self._login(self.admin.username)
        resp = self.client.post(reverse("organization:unit-list"), {"name": "   "}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_operator_sees_only_own_unit_and_cannot_write(self):
        self._login(self.operator.username)
        resp = self.client.get(reverse("organization:unit-list"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([u["id"] for u in resp.data], [self.unit_ranmor.pk])

        resp = self.client.post(reverse("organization:unit-list"), {"name": "Unit Baru"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_empty_unit(self):
        empty = Unit.objects.create(name="Unit Kosong")
        self._login(self.admin.username)
        resp = self.client.delete(reverse("organization:unit-detail", args=[empty.pk]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Unit.objects.filter(pk=empty.pk).exists())

    def test_delete_blocked_by_personnel(self):
        Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_resmob)
        self._login(self.admin.username)
        resp = self.client.delete(reverse("organization:unit-detail", args=[self.unit_resmob.pk]))
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertIn("masih memiliki personil", resp.data["detail"])

    def test_delete_blocked_by_soft_deleted_report(self):
        Report.objects.create(
            report_type="Laporan Polisi", report_year=2025, report_number="9", police_model="B",
            spkt="Polresta Sorong Kota", report_date=timezone.make_aware(datetime(2025, 3, 1, 10, 0)),
            reporter_name="Pelapor", case_type="Curanmor", incident_date="2025-03-01",
            incident_location="Jl. Ahmad Yani", location_type="Jalan Raya", district="Sorong",
            sub_district="Remu", assigned_unit=self.unit_resmob,
            status=ReportStatus.DIHAPUS, status_detail=StatusDetail.DATA_DIHAPUS,
        )
        self._login(self.admin.username)
        resp = self.client.delete(reverse("organization:unit-detail", args=[self.unit_resmob.pk]))
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertIn("laporan", resp.data["detail"])

    def test_put_not_allowed(self):
        self._login(self.admin.username)
        resp = self.client.put(
            reverse("organization:unit-detail", args=[self.unit_ranmor.pk]), {"name": "X"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class TestPersonnelEndpoints(OrganizationApiTestCase):

    def test_list_filtered_by_unit(self):
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        Personnel.objects.create(name="Budi", rank="BRIGPOL", unit=self.unit_resmob)
        self._login(self.admin.username)

        resp = self.client.get(reverse("organization:personnel-list"))
        self.assertEqual(len(resp.data), 2)

        resp = self.client.get(reverse("organization:personnel-list"), {"unit": self.unit_ranmor.pk})
        self.assertEqual([p["id"] for p in resp.data], [andi.pk])
        self.assertEqual(resp.data[0]["display_name"], "BRIPKA Andi")
        self.assertFalse(resp.data[0]["has_account"])

    def test_operator_only_sees_own_unit(self):
        Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        budi = Personnel.objects.create(name="Budi", rank="BRIGPOL", unit=self.unit_resmob)
        self._login(self.operator.username)

        resp = self.client.get(reverse("organization:personnel-list"))
        self.assertEqual([p["name"] for p in resp.data], ["Andi"])
        resp = self.client.get(reverse("organization:personnel-detail", args=[budi.pk]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_creates_personnel(self):
        self._login(self.admin.username)
        resp = self.client.post(
            reverse("organization:personnel-list"),
            {"name": "Citra", "rank": "BRIPDA", "unit": self.unit_resmob.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["unit_name"], "Unit Resmob")

    def test_moving_personnel_moves_their_account(self):
        account = User.objects.create_user(
            username="andi", email="andi@reskrim.local", password=PASSWORD,
            role=UserRole.OPERATOR, unit=self.unit_ranmor,
        )
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor, user=account)
        self._login(self.admin.username)

        resp = self.client.patch(
            reverse("organization:personnel-detail", args=[andi.pk]),
            {"unit": self.unit_resmob.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        account.refresh_from_db()
        self.assertEqual(account.unit_id, self.unit_resmob.pk)

    def test_delete_removes_assignments_and_account(self):
        account = User.objects.create_user(
            username="andi", email="andi@reskrim.local", password=PASSWORD,
            role=UserRole.OPERATOR, unit=self.unit_ranmor,
        )
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor, user=account)
        report = Report.objects.create(
            report_type="Pengaduan Masyarakat", report_year=2025, report_number="4",
            spkt="Polresta Sorong Kota", report_date=timezone.make_aware(datetime(2025, 3, 1, 10, 0)),
            reporter_name="Pelapor", case_type="Penipuan", incident_date="2025-03-01",
            incident_location="Pasar Remu", location_type="Pusat Perbelanjaan", district="Sorong",
            sub_district="Remu", assigned_unit=self.unit_ranmor,
        )
        PersonnelAssignment.objects.create(report=report, personnel=andi)
        self._login(self.admin.username)

        resp = self.client.delete(reverse("organization:personnel-detail", args=[andi.pk]))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Personnel.objects.filter(pk=andi.pk).exists())
        self.assertFalse(User.objects.filter(pk=account.pk).exists())
        self.assertFalse(PersonnelAssignment.objects.exists())
        self.assertTrue(Report.objects.filter(pk=report.pk).exists())


class TestOperatorAccountCreation(OrganizationApiTestCase):

    def test_create_account_then_login_as_operator(self):
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        self._login(self.admin.username)

        resp = self.client.post(
            reverse("organization:personnel-create-account", args=[andi.pk]),
            {"email": "andi@reskrim.local", "password": "Sorong!2025"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertTrue(resp.data["has_account"])
        self.assertEqual(resp.data["email"], "andi@reskrim.local")

        self.client.credentials()
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": "andi@reskrim.local", "password": "Sorong!2025"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["user"]["role"], UserRole.OPERATOR)
        self.assertEqual(resp.data["user"]["unit"], self.unit_ranmor.pk)
        self.assertEqual(resp.data["user"]["personnel_id"], andi.pk)

    def test_second_account_conflicts(self):
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        self._login(self.admin.username)
        url = reverse("organization:personnel-create-account", args=[andi.pk])

        first = self.client.post(url, {"email": "andi@reskrim.local", "password": "Sorong!2025"}, format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        second = self.client.post(url, {"email": "andi2@reskrim.local", "password": "Sorong!2025"}, format="json")
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)

    def test_taken_email_conflicts(self):
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        self._login(self.admin.username)
        resp = self.client.post(
            reverse("organization:personnel-create-account", args=[andi.pk]),
            {"email": self.operator.email, "password": "Sorong!2025"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        andi.refresh_from_db()
        self.assertIsNone(andi.user_id)

    def test_short_password_rejected(self):
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        self._login(self.admin.username)
        resp = self.client.post(
            reverse("organization:personnel-create-account", args=[andi.pk]),
            {"email": "andi@reskrim.local", "password": "12345"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", resp.data)

    def test_operator_cannot_create_accounts(self):
        andi = Personnel.objects.create(name="Andi", rank="BRIPKA", unit=self.unit_ranmor)
        self._login(self.operator.username)
        resp = self.client.post(
            reverse("organization:personnel-create-account", args=[andi.pk]),
            {"email": "andi@reskrim.local", "password": "Sorong!2025"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
