"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(base_path="/api", strict_pipelines=True)
    """

    debug: bool = False

    # Routing
    base_path: str = "/"
    # Raise instead of skipping when a verb node builds no middleware
    strict_pipelines: bool = False

    # Templates (view nodes)
    template_dir: str | Path = "templates"
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True
