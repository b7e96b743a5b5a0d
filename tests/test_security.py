import unittest
from datetime import timedelta

import jwt
from fastapi import HTTPException

from marketplace.config import get_settings
from marketplace.core.security import authenticate_supplier, create_access_token


class SupplierTokenTest(unittest.TestCase):
    def test_token_round_trip(self):
        token = create_access_token(7)
        identity = authenticate_supplier(f"Bearer {token}")
        self.assertEqual(identity.supplier_id, 7)
        self.assertEqual(identity.claims["sub"], "7")

    def test_missing_or_malformed_header(self):
        for header in (None, "", "Token abc", "Bearer"):
            with self.assertRaises(HTTPException) as ctx:
                authenticate_supplier(header)
            self.assertEqual(ctx.exception.status_code, 401)

    def test_expired_token_is_rejected(self):
        token = create_access_token(7, expires_delta=timedelta(seconds=-5))
        with self.assertRaises(HTTPException) as ctx:
            authenticate_supplier(f"Bearer {token}")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_token_signed_with_another_secret_is_rejected(self):
        token = jwt.encode({"supplier_id": 7}, "other-secret", algorithm="HS256")
        with self.assertRaises(HTTPException):
            authenticate_supplier(f"Bearer {token}")

    def test_token_without_supplier_claim_is_rejected(self):
        settings = get_settings()
        token = jwt.encode({"role": "buyer"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        with self.assertRaises(HTTPException) as ctx:
            authenticate_supplier(f"Bearer {token}")
        self.assertEqual(ctx.exception.detail, "Token does not identify a supplier")


if __name__ == "__main__":
    unittest.main()
