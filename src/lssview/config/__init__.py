"""Configuration module for LSSView."""

from src.lssview.config.settings import (
    CameraSettings,
    DisplaySettings,
    SubjectFilter,
    ViewerConfig,
)


__all__ = [
    "CameraSettings",
    "DisplaySettings",
    "SubjectFilter",
    "ViewerConfig",
]
