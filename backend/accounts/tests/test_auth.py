import json

from django.test import RequestFactory, TestCase
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework.test import APIClient

from accounts.models import CustomUser
from accounts.permissions import RATE_PERMISSIONS, RatePermission, has_role


class _View:
    pass


class RatePermissionTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        U = get_user_model()
        cls.admin = U.objects.create_user(username="admin1", password="x", role=CustomUser.ADMIN)
        cls.dispatcher = U.objects.create_user(username="disp1", password="x", role=CustomUser.DISPATCHER)
        cls.accountant = U.objects.create_user(username="acct1", password="x", role=CustomUser.ACCOUNTANT)

    def setUp(self):
        self.factory = RequestFactory()
        self.perm = RatePermission()

    def _allowed(self, user, method, rate_action=None):
        request = getattr(self.factory, method.lower())("/api/rates/")
        request.user = user
        view = _View()
        if rate_action:
            view.rate_action = rate_action
        return self.perm.has_permission(request, view)

    def test_role_matrix(self):
        self.assertTrue(self._allowed(self.accountant, "GET"))
        self.assertFalse(self._allowed(self.accountant, "POST"))
        self.assertTrue(self._allowed(self.dispatcher, "PATCH"))
        self.assertFalse(self._allowed(self.dispatcher, "DELETE"))
        self.assertTrue(self._allowed(self.admin, "DELETE"))

    def test_view_can_override_action(self):
        self.assertFalse(self._allowed(self.accountant, "POST", rate_action="update"))
        self.assertTrue(self._allowed(self.dispatcher, "POST", rate_action="update"))

    def test_anonymous_has_no_role(self):
        self.assertFalse(has_role(AnonymousUser(), RATE_PERMISSIONS["read"]))


class AuthEndpointTests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_register_then_login(self):
        resp = self.client.post(
            "/api/auth/register/",
            data=json.dumps({"username": "newbie", "password": "pw", "role": "accountant"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["role"], CustomUser.ACCOUNTANT)

        resp = self.client.post(
            "/api/auth/login/",
            data=json.dumps({"username": "newbie", "password": "pw"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["token"])

    def test_register_cannot_claim_admin(self):
        resp = self.client.post(
            "/api/auth/register/",
            data=json.dumps({"username": "sneaky", "password": "pw", "role": "admin"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(CustomUser.objects.filter(username="sneaky").exists())

    def test_bad_credentials(self):
        resp = self.client.post(
            "/api/auth/login/",
            data=json.dumps({"username": "ghost", "password": "pw"}),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 401)

    def test_me_reports_rate_permissions(self):
        user = CustomUser.objects.create_user(username="acct2", password="pw", role=CustomUser.ACCOUNTANT)
        self.client.force_authenticate(user=user)
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json()["permissions"],
            {"read": True, "create": False, "update": False, "delete": False},
        )
