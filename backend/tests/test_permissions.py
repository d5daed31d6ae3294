import unittest

from fastapi import HTTPException

from app.core.permissions import (
    OPERATION_ROLES,
    Role,
    allowed_operations,
    authorize,
    is_allowed,
    parse_role,
    require_permission,
)
from app.core.security import CurrentUser


def _user(role: str) -> CurrentUser:
    return CurrentUser(id="u-1", auth_user_id="auth-1", email="u@agency.com", role=role)


class TestPermissionTable(unittest.TestCase):
    def test_preview_allow_list(self):
        self.assertEqual(
            {r.value for r in OPERATION_ROLES["import.preview"]},
            {"platform_admin", "agency_admin", "agency_user", "client_admin", "client_user"},
        )

    def test_parse_role(self):
        self.assertIs(parse_role(" Agency_Admin "), Role.AGENCY_ADMIN)
        self.assertIsNone(parse_role("buyer"))
        self.assertIsNone(parse_role(""))

    def test_is_allowed(self):
        self.assertTrue(is_allowed("client_user", "import.preview"))
        self.assertFalse(is_allowed("buyer", "import.preview"))
        self.assertFalse(is_allowed(None, "import.preview"))

    def test_unknown_operation_is_a_programming_error(self):
        with self.assertRaises(KeyError):
            is_allowed("platform_admin", "import.delete_everything")
        with self.assertRaises(KeyError):
            require_permission("import.delete_everything")

    def test_allowed_operations(self):
        self.assertEqual(allowed_operations("platform_admin"), sorted(OPERATION_ROLES))
        self.assertEqual(allowed_operations("buyer"), [])


class TestAuthorize(unittest.TestCase):
    def test_allowed_role_passes(self):
        authorize(_user("agency_user"), "import.preview")

    def test_unlisted_role_is_forbidden(self):
        with self.assertRaises(HTTPException) as ctx:
            authorize(_user("buyer"), "import.preview")
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.detail, "Insufficient permissions")

    def test_missing_role_is_forbidden(self):
        with self.assertRaises(HTTPException) as ctx:
            authorize(_user(""), "import.preview")
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.detail, "No user role found")

    def test_dependency_returns_user(self):
        dependency = require_permission("import.templates.read")
        user = _user("client_admin")
        self.assertIs(dependency(user=user), user)


if __name__ == "__main__":
    unittest.main()
