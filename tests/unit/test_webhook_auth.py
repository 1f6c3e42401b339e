import base64
import hashlib
import hmac
import unittest

from services.webhook_auth import compute_signature, verify_signature


SECRET = "shpss_unit_secret"
BODY = b'{"id": 1001, "total_price": "1200.00"}'


class TestWebhookSignature(unittest.TestCase):
    def test_signature_is_base64_hmac_sha256_of_raw_body(self):
        expected = base64.b64encode(hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()).decode()
        self.assertEqual(compute_signature(BODY, SECRET), expected)

    def test_valid_signature_accepted(self):
        self.assertTrue(verify_signature(BODY, compute_signature(BODY, SECRET), SECRET))

    def test_surrounding_whitespace_in_header_is_tolerated(self):
        sig = compute_signature(BODY, SECRET)
        self.assertTrue(verify_signature(BODY, f"  {sig}\n", SECRET))

    def test_tampered_body_rejected(self):
        sig = compute_signature(BODY, SECRET)
        self.assertFalse(verify_signature(BODY.replace(b"1200", b"1201"), sig, SECRET))

    def test_reserialized_body_rejected(self):
        # same JSON, different bytes
        sig = compute_signature(BODY, SECRET)
        self.assertFalse(verify_signature(b'{"id":1001,"total_price":"1200.00"}', sig, SECRET))

    def test_wrong_secret_rejected(self):
        sig = compute_signature(BODY, "other-secret")
        self.assertFalse(verify_signature(BODY, sig, SECRET))

    def test_garbage_signature_rejected(self):
        for sig in ("", "not-base64!!", "é"):
            with self.subTest(sig=sig):
                self.assertFalse(verify_signature(BODY, sig, SECRET))


if __name__ == "__main__":
    unittest.main()
