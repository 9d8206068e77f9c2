import secrets
from fastapi import HTTPException, status, Header
from snapvault.config import get_settings

settings = get_settings()

def check_admin_password(password: str) -> bool:
    return secrets.compare_digest(password.encode(), settings.admin_password.encode())

async def verify_api_key(authorization: str = Header(...)):
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication scheme"
        )

    token = authorization.split("Bearer ")[1].strip()
    if not secrets.compare_digest(token.encode(), settings.admin_api_key.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API token"
        )

    return token
