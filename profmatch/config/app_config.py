"""Explicit, immutable configuration handed to the pipelines.

Services never read environment variables or module-level singletons;
``main.py`` and the CLI build one :class:`AppConfig` via
:func:`profmatch.config.loader.load_config` and pass the relevant pieces
into constructors.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExtractionSelectors(BaseModel):
    """Where the instructor fields live on a rating page.

    The defaults match the instructor pages the service was built against;
    when the site's markup changes, override them in ``config/config.yaml``
    rather than in code.
    """

    model_config = ConfigDict(frozen=True)

    title_meta: str = 'meta[name="title"]'
    title_separator: str = " at "
    description_meta: str = 'meta[name="description"]'
    department_prefix: str = "in the "
    department_suffix: str = " department"
    rating_selector: str = "div.liyUjw"
    review_selector: str = "div.Comments__StyledComments-dzzyvm-0.gRjWel"
    max_reviews: int = Field(default=5, ge=1)


class TimeoutConfig(BaseModel):
    """Per-call timeouts in seconds; ``0`` disables the limit."""

    model_config = ConfigDict(frozen=True)

    fetch: float = Field(default=10.0, ge=0.0)
    embed: float = Field(default=15.0, ge=0.0)
    index: float = Field(default=10.0, ge=0.0)
    generation: float = Field(default=60.0, ge=0.0)


class GenerationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1200, ge=1)


class AppConfig(BaseModel):
    """Fully resolved configuration for one process."""

    model_config = ConfigDict(frozen=True)

    top_k: int = Field(default=3, ge=1)
    namespace: str = "ns1"
    # None = take the dimension from the embedding provider at startup.
    embedding_dimension: int | None = Field(default=None, ge=1)
    selectors: ExtractionSelectors = Field(default_factory=ExtractionSelectors)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
