# batepapo/core/config.py
import os
from typing import Literal
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - STORAGE_BACKEND the document store to use: "memory" or "mongo"
        - MONGO_URI / MONGO_DB where the "mongo" backend connects
        - STALE_AFTER_SECONDS how long a participant may go without a heartbeat
        - SWEEP_INTERVAL_SECONDS how often stale participants are evicted
    """

    # Load environment variables from the .env file
    load_dotenv()

    STORAGE_BACKEND: Literal["memory", "mongo"] = (os.getenv("STORAGE_BACKEND", "memory"))

    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB: str = os.getenv("MONGO_DB", "batePapoUol")

    STALE_AFTER_SECONDS: float = float(os.getenv("STALE_AFTER_SECONDS", "10"))
    SWEEP_INTERVAL_SECONDS: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "15"))

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))

settings = Settings()
