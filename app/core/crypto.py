import base64
import hashlib
import json
from cryptography.fernet import Fernet, InvalidToken
from app.core.config import settings

_cipher: Fernet | None = None

def _fernet() -> Fernet:
    global _cipher
    if _cipher is None:
        if settings.CREDENTIALS_KEY:
            key = settings.CREDENTIALS_KEY.encode()
        else:
            # dev fallback: stable key derived from the JWT secret
            key = base64.urlsafe_b64encode(hashlib.sha256(settings.JWT_SECRET.encode()).digest())
        _cipher = Fernet(key)
    return _cipher

def encrypt_json(data: dict) -> str:
    return _fernet().encrypt(json.dumps(data, separators=(",", ":")).encode()).decode()

def decrypt_json(token: str | None) -> dict:
    if not token:
        return {}
    try:
        return json.loads(_fernet().decrypt(token.encode()).decode())
    except InvalidToken:
        raise ValueError("credentials_undecryptable")
