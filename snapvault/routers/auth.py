import logging
from fastapi import APIRouter, HTTPException, status
from snapvault.config import get_settings
from snapvault.models import LoginRequest, LoginResponse
from snapvault.utils.security import check_admin_password

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()

@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest):
    if not check_admin_password(body.password):
        logger.warning("Rejected admin login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Password"
        )
    logger.info("Admin logged in")
    return LoginResponse(token=settings.admin_api_key)
