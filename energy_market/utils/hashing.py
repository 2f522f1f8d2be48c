"""
Hashing utilities for password storage and bearer token issuance.
"""

import hashlib
import hmac
import secrets

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str, iterations: int) -> str:
    """
    Hash a password with a random salt (werkzeug pbkdf2:sha256).
    
    Args:
        password: Plaintext password
        iterations: PBKDF2 iteration count
        
    Returns:
        Werkzeug hash string: pbkdf2:sha256:<iterations>$<salt>$<digest>
    """
    return generate_password_hash(password, method=f"pbkdf2:sha256:{iterations}")


def verify_password(password: str, encoded: str) -> bool:
    """Check a plaintext password against a stored hash."""
    try:
        return check_password_hash(encoded, password)
    except ValueError:
        # Unknown hash method in the stored value
        return False


def issue_token(user_id: str, secret_key: str) -> str:
    """Issue a bearer token of the form <user id>.<nonce>.<hmac-sha256 signature>."""
    nonce = secrets.token_hex(8)
    payload = f"{user_id}.{nonce}"
    signature = hmac.new(secret_key.encode(), payload.encode(), hashlib.sha256).hexdigest()
    return f"{payload}.{signature}"
