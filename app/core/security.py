from datetime import datetime, timedelta, timezone

from jose import jwt

JWT_ALGORITHM = "HS256"


def create_jwt(payload: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    data = payload.copy()
    data.update({"iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())})
    return jwt.encode(data, secret, algorithm=JWT_ALGORITHM)


def decode_jwt(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])


def create_admin_token(*, user_id: str, email: str, role: str, tenant_id: str, secret: str, ttl_minutes: int) -> str:
    claims = {"sub": str(user_id), "email": email, "role": role, "tenant_id": str(tenant_id)}
    return create_jwt(claims, secret, timedelta(minutes=ttl_minutes))
