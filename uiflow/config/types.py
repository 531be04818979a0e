from typing import Optional, Literal
from pydantic import BaseModel, Field


class RunConfig(BaseModel):
    """Configuration for one workflow run"""

    base_url: str = "https://www.amazon.com/"
    implicit_wait_seconds: float = Field(default=5.0, ge=0)
    explicit_wait_seconds: float = Field(default=5.0, ge=0)
    poll_interval_seconds: float = Field(default=0.25, gt=0)
    browser_type: Literal["chrome", "edge"] = "chrome"
    start_maximized: bool = True
    headless: bool = False
    screenshot_dir: Optional[str] = None  # Save a screenshot of the first failing step here

    model_config = {"frozen": True}
