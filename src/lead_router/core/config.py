"""
Application configuration settings loaded from config.yaml
"""
import yaml
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, field_validator


class DatabasePoolConfig(BaseModel):
    """Database connection pool configuration"""
    size: int = 10  # Number of connections to maintain
    max_overflow: int = 20  # Maximum overflow connections
    timeout: int = 30  # Seconds to wait for a connection
    recycle: int = 3600  # Seconds before recycling a connection
    echo: bool = False  # Log SQL queries


class DatabaseConfig(BaseModel):
    """Database configuration"""
    server: str = "localhost"
    user: str = "postgres"
    password: str = ""
    db: str = "leads"
    port: str = "5432"
    schema: str = "public"  # PostgreSQL schema name
    dsn: Optional[str] = None  # Full SQLAlchemy URL, overrides the fields above
    pool: DatabasePoolConfig = DatabasePoolConfig()

    @property
    def url(self) -> str:
        """Construct database URL"""
        if self.dsn:
            return self.dsn
        return f"postgresql://{self.user}:{self.password}@{self.server}:{self.port}/{self.db}"

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class SecurityConfig(BaseModel):
    """Security configuration"""
    admin_api_key: str


class RoutingConfig(BaseModel):
    """Lead routing configuration"""
    system_agent_email: str = "system@mktr.local"
    system_agent_first_name: str = "System"
    system_agent_last_name: str = "Agent"
    max_attempts: int = 2  # Selection attempts before overflowing to the System Agent

    @field_validator("max_attempts")
    @classmethod
    def at_least_one_attempt(cls, v):
        if v < 1:
            raise ValueError("routing.max_attempts must be at least 1")
        return v


class EmailConfig(BaseModel):
    """Outbound notification configuration (HTTP mail API)"""
    api_url: Optional[str] = None  # Leave empty to log emails instead of sending
    api_key: Optional[str] = None
    from_address: str = "leads@mktr.local"
    dashboard_url: Optional[str] = None  # Linked from assignment emails
    timeout: int = 10


class Settings(BaseModel):
    """Application settings loaded from config.yaml"""

    # Project settings
    project_name: str = "Lead Router API"
    version: str = "1.0.0"
    description: str = "Prospect intake and credit-aware round-robin lead routing"
    api_prefix: str = "/api"

    # Database settings
    database: DatabaseConfig

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL"""
        return self.database.url

    # CORS settings
    backend_cors_origins: List[str] = []

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        return []

    # Security settings
    security: SecurityConfig

    # Routing settings
    routing: RoutingConfig = RoutingConfig()

    # Email settings
    email: EmailConfig = EmailConfig()

    # Logging
    log_level: str = "INFO"

    class Config:
        case_sensitive = False


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml file. If None, looks for config.yaml in:
                    1. Current directory
                    2. Project root (src/../config.yaml)

    Returns:
        Settings: Loaded and validated settings
    """
    if config_path is None:
        # Try current directory first
        current_dir = Path.cwd() / "config.yaml"
        if current_dir.exists():
            config_path = str(current_dir)
        else:
            # Try project root (assuming we're in src/lead_router/core/)
            project_root = Path(__file__).parent.parent.parent.parent / "config.yaml"
            if project_root.exists():
                config_path = str(project_root)
            else:
                raise FileNotFoundError(
                    "config.yaml not found. Please create config.yaml in the project root."
                )

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        config_data = yaml.safe_load(f)

    if config_data is None:
        raise ValueError("Configuration file is empty or invalid")

    return Settings(**config_data)


# Load settings on module import
settings = load_config()
