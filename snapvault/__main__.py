import logging
import sys
import uvicorn
from snapvault.config import get_settings

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

def main() -> None:
    settings = get_settings()
    options = {"host": settings.backend_host, "port": settings.backend_port}
    if settings.use_https:
        if not settings.ssl_keyfile or not settings.ssl_certfile:
            raise ValueError("SSL_KEYFILE and SSL_CERTFILE are required when USE_HTTPS is set")
        options.update(ssl_keyfile=settings.ssl_keyfile, ssl_certfile=settings.ssl_certfile)

    logger.info(f"Starting SnapVault API on {settings.backend_host}:{settings.backend_port}")
    try:
        uvicorn.run("snapvault.main:app", **options)
    except Exception as e:
        logger.error(f"Error starting server: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
