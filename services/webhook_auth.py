import base64
import hashlib
import hmac


def compute_signature(raw_body: bytes, secret: str) -> str:
    """
    Shopify webhook signature:
    base64( HMAC-SHA256(key=app secret, msg=exact raw request bytes) )
    """
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8"))
