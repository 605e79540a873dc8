"""Application configuration settings."""

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "KEAM Prep"
    debug: bool = True
    log_level: str = "INFO"

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    data_dir: Path = base_dir / "data"
    questions_dir: Path = data_dir / "questions"

    # Database
    # Local SQLite file for dev; point at Postgres (asyncpg) in deployment.
    database_url: str = f"sqlite+aiosqlite:///{data_dir / 'examprep.db'}"
    seed_on_startup: bool = True

    # Identity provider (tokens are issued upstream, we only verify them)
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = None

    # Catalog
    default_exam: str = "KEAM"

    # Mock test settings
    mock_test_name: str = "KEAM Mock Test"
    mock_test_size: int = 40
    mock_test_duration_seconds: int = 150 * 60  # 2.5 hours
    violation_limit: int = 3  # tab switches before auto-submit
    violation_grace_seconds: float = 2.0
    mock_test_retention_seconds: float = 60 * 60  # submitted sessions are dropped after this

    # Leaderboard settings
    leaderboard_min_correct: int = 5
    leaderboard_size: int = 50

    cors_origins: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
