from dataclasses import dataclass
from dotenv import load_dotenv
import os

load_dotenv()

@dataclass(frozen=True)
class Settings:
    log_level: str = os.getenv("OCTREE_LOG_LEVEL", "INFO")
    http_timeout: float = float(os.getenv("OCTREE_HTTP_TIMEOUT", "30"))

settings = Settings()
