# backend/utils/hashing.py
import bcrypt

# bcrypt only looks at the first 72 bytes of the password
_MAX_BCRYPT_BYTES = 72

def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BCRYPT_BYTES]

# Hash a plaintext password with a fresh salt
def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")

# Check a plaintext password against the stored hash
def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
