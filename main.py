"""
Department layout service entry point
Run with: python main.py or uvicorn main:app --reload
"""

import uvicorn

from app.api.main import app
from app.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "app.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
