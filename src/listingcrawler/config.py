"""Configuration system for listingcrawler.

Uses pydantic-settings to load configuration from environment variables
and .env files with defaults tuned for JavaScript-heavy listing sites.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .render.engine import Identity, LaunchOptions

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--disable-extensions",
    "--disable-plugins",
]


class Settings(BaseSettings):
    """Crawler settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables are prefixed with LISTINGCRAWLER_
    (e.g., LISTINGCRAWLER_MAX_PAGES).
    """

    model_config = SettingsConfigDict(
        env_prefix="LISTINGCRAWLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Browser identity
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    viewport_width: int = Field(default=1280, ge=320)
    viewport_height: int = Field(default=720, ge=240)
    headless: bool = Field(default=True)
    browser_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))
    executable_path: str | None = Field(
        default=None,
        description="Custom Chromium binary (PUPPETEER_EXECUTABLE_PATH equivalent)",
    )
    stealth: bool = Field(
        default=True,
        description="Inject the navigator-masking init script into every page",
    )

    # Timeouts (milliseconds)
    seed_timeout_ms: int = Field(default=60000, ge=1)
    detail_timeout_ms: int = Field(default=30000, ge=1)
    ready_timeout_ms: int = Field(
        default=10000, ge=1, description="Wait for listing cards to appear"
    )
    next_navigation_timeout_ms: int = Field(
        default=15000, ge=1, description="Wait for navigation after clicking next"
    )
    wait_until: str = Field(default="domcontentloaded")

    # Politeness (seconds)
    item_delay: float = Field(
        default=1.0, ge=0, description="Pause between consecutive detail pages"
    )
    detail_settle: float = Field(
        default=2.0, ge=0, description="Pause after a detail page loads"
    )

    # Lazy-content scrolling
    scroll_step_px: int = Field(default=600, ge=1)
    scroll_interval_ms: int = Field(default=100, ge=0)
    scroll_target_fraction: float = Field(default=0.9, gt=0, le=1)
    scroll_max_wait_ms: int = Field(default=30000, ge=0)
    scroll_buffer_ms: int = Field(default=2000, ge=0)

    # Pagination guard
    max_pages: int = Field(default=50, ge=1)

    # Persistence
    db_path: Path | None = Field(
        default=None,
        description="SQLite database the CLI stores into when --db is not given",
    )
    database_url: str | None = Field(
        default=None, description="Postgres DSN for the asyncpg store"
    )

    def identity(self) -> Identity:
        """Browser identity for new pages."""
        return Identity(
            user_agent=self.user_agent,
            viewport_width=self.viewport_width,
            viewport_height=self.viewport_height,
        )

    def launch_options(self) -> LaunchOptions:
        """Engine launch options."""
        return LaunchOptions(
            headless=self.headless,
            args=list(self.browser_args),
            executable_path=self.executable_path,
        )
