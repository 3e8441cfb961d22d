import logging
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from exgrid.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_PAGE_SIZE_OPTIONS,
    EMPTY_MESSAGE,
    LOADING_MESSAGE,
    MAX_PAGE_SIZE,
    MAX_VISIBLE_PAGES,
    PLACEHOLDER,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "EXGRID_"


class GridSettings(BaseModel):
    """Configuration of a table.

    Attributes:
        page_size: Initial number of rows per page.
        page_size_options: The page sizes offered to the user.
        max_page_size: Largest page size accepted from the user; larger
            requests are clamped.
        max_visible_pages: Width of the page-number window.
        placeholder: Text shown for missing or empty values.
        empty_message: Text shown when the table has no rows.
        loading_message: Text shown while the host loads data.
        export_directory: Where built-in encoders write their files.
    """

    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    page_size_options: List[int] = Field(
        default_factory=lambda: list(DEFAULT_PAGE_SIZE_OPTIONS), min_length=1
    )
    max_page_size: int = Field(default=MAX_PAGE_SIZE, gt=0)
    max_visible_pages: int = Field(default=MAX_VISIBLE_PAGES, gt=0)
    placeholder: str = PLACEHOLDER
    empty_message: str = EMPTY_MESSAGE
    loading_message: str = LOADING_MESSAGE
    export_directory: str = "."

    @field_validator("page_size_options")
    @classmethod
    def _check_options(cls, value: List[int]) -> List[int]:
        if any(v <= 0 for v in value):
            raise ValueError("Page size options must be positive")
        return sorted(set(value))

    @model_validator(mode="after")
    def _check_page_size(self) -> "GridSettings":
        if self.page_size > self.max_page_size:
            raise ValueError(
                f"page_size ({self.page_size}) is larger than max_page_size "
                f"({self.max_page_size})"
            )
        return self

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Dict[str, str]] = None,
        **overrides: Any,
    ) -> "GridSettings":
        """Create the settings from environment variables.

        Each setting is read from the upper-case variable with the given
        prefix (`EXGRID_PAGE_SIZE`, `EXGRID_PAGE_SIZE_OPTIONS`, ...). Lists
        are comma separated. Explicit overrides win over the environment.

        Args:
            prefix: Prefix of the variable names.
            environ: The variables to read; defaults to `os.environ`.
            overrides: Values that take precedence.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(f"{prefix}{name.upper()}")
            if raw is None:
                continue
            if name == "page_size_options":
                values[name] = [
                    int(part) for part in raw.split(",") if part.strip()
                ]
            else:
                values[name] = raw
        values.update(overrides)
        if values:
            logger.debug("Settings from environment: %s", values)
        return cls(**values)
