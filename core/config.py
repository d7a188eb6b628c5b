"""Configuration settings for the application."""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()

class Settings:
    """Application settings with validation."""

    def __init__(self):
        # Application settings
        self.app_name: str = os.getenv("APP_NAME", "Schema Graph Importer API")
        self.app_version: str = os.getenv("APP_VERSION", "1.0.0")
        self.debug: bool = self._get_bool_env("DEBUG", False)

        # Server settings
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "8000"))

        # Graph store (MongoDB)
        self.mongo_url: str = os.getenv("MONGO_URL", "mongodb://localhost:27017")
        self.mongo_db: str = os.getenv("MONGO_DB", "schema_graph_db")
        self.graph_collection: str = os.getenv("GRAPH_COLLECTION", "graphs")

        # Dump provider
        self.dump_url: str = os.getenv(
            "DUMP_URL",
            "http://localhost:4000/backend/index.php/api/mysqldump"
        )
        self.dump_field: str = os.getenv("DUMP_FIELD", "dumpSQL")
        self.dump_dialect: str = os.getenv("DUMP_DIALECT", "mysql")
        self.http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))

        # CORS Configuration
        cors_origins_str = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins: List[str] = [o.strip() for o in cors_origins_str.split(",")] if cors_origins_str != "*" else ["*"]
        self.cors_credentials: bool = self._get_bool_env("CORS_CREDENTIALS", True)
        self.cors_methods: List[str] = ["*"]
        self.cors_headers: List[str] = ["*"]

        # Logging Configuration
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: str = os.getenv("LOG_DIR", "logs")
        self.log_file_size: int = int(os.getenv("LOG_FILE_SIZE", str(10*1024*1024)))  # 10MB
        self.log_backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))

        # Canvas layout. Cell pitch must stay larger than the card size.
        self.layout_cell_width: int = int(os.getenv("LAYOUT_CELL_WIDTH", "320"))
        self.layout_cell_height: int = int(os.getenv("LAYOUT_CELL_HEIGHT", "420"))
        self.layout_card_width: int = int(os.getenv("LAYOUT_CARD_WIDTH", "260"))
        self.layout_card_height: int = int(os.getenv("LAYOUT_CARD_HEIGHT", "360"))
        self.layout_row_width: int = int(os.getenv("LAYOUT_ROW_WIDTH", "1600"))

        if self.layout_card_width >= self.layout_cell_width or self.layout_card_height >= self.layout_cell_height:
            raise ValueError("Layout cell pitch must be larger than the table card size")

    def _get_bool_env(self, key: str, default: bool) -> bool:
        """Get boolean environment variable."""
        value = os.getenv(key, str(default)).lower()
        return value in ("true", "1", "yes", "on")

# Create settings instance
settings = Settings()

