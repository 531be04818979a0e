from typing import Any, Dict, Optional, Literal, Union
from pydantic import BaseModel, field_validator

LocatorStrategy = Literal[
    "css", "link_text", "partial_link_text", "xpath", "id", "name", "tag", "class"
]


class Locator(BaseModel):
    """Where to find zero or more elements.

    ``scope`` names a RunState key holding a previously captured element;
    when set the query is resolved inside that element only.
    """

    query: str
    by: LocatorStrategy = "css"
    scope: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("locator query must not be empty")
        return value

    @classmethod
    def parse(cls, data: Union[str, Dict[str, Any], "Locator"]) -> "Locator":
        """Build a locator from a bare CSS selector or a mapping."""
        if isinstance(data, Locator):
            return data
        if isinstance(data, str):
            return cls(query=data)
        if isinstance(data, dict):
            return cls(**data)
        raise ValueError(f"Invalid locator: {data!r}")

    def __str__(self) -> str:
        prefix = f"{self.scope} >> " if self.scope else ""
        return f"{prefix}{self.by}={self.query}"


class BrowserOptions(BaseModel):
    """Options for browser configuration"""

    headless: bool = False
    start_maximized: bool = True
    width: int = 1920
    height: int = 1080
