"""
Server entry point.
"""
import uvicorn

from energy_market.core.config import get_settings
from energy_market.main import configure_logging, create_app

settings = get_settings()
configure_logging(settings)

app = create_app(settings=settings)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host='0.0.0.0',
        port=settings.port,
        log_level=settings.log_level.lower()
    )
