from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notice_render.pipeline.render import PAGE_SIZES

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # App Settings
    app_name: str = Field(default="Notice Render Server", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server Settings
    HOST: str = Field(default="0.0.0.0", description="Bind host")
    PORT: int = Field(default=3000, description="Bind port")
    PUBLIC_BASE_URL: str = Field(
        default="",
        description="Base URL used for asset links in rendered documents (empty = derive from request)"
    )

    # Rendering Settings
    RENDER_TIMEOUT: float = Field(
        default=60.0, description="Per-render timeout in seconds"
    )
    PAGE_SIZE: str = Field(default="a4", description="Page size preset: a4, letter, legal")
    PDF_FILENAME: str = Field(default="notice.pdf", description="Suggested download filename")
    WAIT_FOR_IMAGES: bool = Field(
        default=False, description="Wait for images and fonts to finish loading before printing"
    )

    # Browser Settings
    BROWSER_HEADLESS: bool = Field(default=True, description="Run Chromium headless")
    BROWSER_WARMUP: bool = Field(
        default=False, description="Launch the browser at startup instead of on first render"
    )

    # Template and Asset Settings
    TEMPLATES_DIR: str = Field(
        default=str(PACKAGE_DIR / "templates"), description="Directory holding form.html and template.html"
    )
    ASSETS_DIR: str = Field(
        default=str(PACKAGE_DIR / "assets"), description="Directory served under /assets (logo, fonts)"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("PAGE_SIZE", mode="before")
    @classmethod
    def validate_page_size(cls, v):
        """Validate page size preset"""
        valid_sizes = sorted(PAGE_SIZES)
        if v.lower() not in valid_sizes:
            raise ValueError(f"PAGE_SIZE must be one of {valid_sizes}")
        return v.lower()

    @field_validator("RENDER_TIMEOUT")
    @classmethod
    def validate_render_timeout(cls, v):
        if v < 0:
            raise ValueError("RENDER_TIMEOUT must not be negative")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance"""
    return settings
