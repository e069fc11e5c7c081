"""ASGI entry point of the billing API

    uvicorn api:app
"""

import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    # reload and multiple workers are mutually exclusive in uvicorn
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        reload=ApplicationConfig.API_RELOAD,
        workers=None if ApplicationConfig.API_RELOAD else ApplicationConfig.API_WORKERS,
        log_level=ApplicationConfig.LOG_LEVEL.lower(),
    )
