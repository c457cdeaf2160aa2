from .loader import load_config, load_config_with_overrides
from .schema import (
    AnnotationConfig,
    DatabaseConfig,
    OutputConfig,
    PipelineConfig,
    SearchConfig,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "DatabaseConfig",
    "SearchConfig",
    "AnnotationConfig",
    "OutputConfig",
]
