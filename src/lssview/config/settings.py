"""
Configuration dataclasses for the LSSView point-cloud viewer.

This module provides type-safe configuration using Python 3.10+ dataclasses.
Snapshot sources may be local paths or http(s) URLs.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any

from src.domain.filters import SubjectFilter  # Re-exported from domain
from src.shared.exceptions import ConfigError


logger = logging.getLogger(__name__)


__all__ = [
    "CameraSettings",
    "DisplaySettings",
    "SubjectFilter",
    "ViewerConfig",
    "CONTROLLER_TYPES",
    "FRAMING_POLICIES",
    "VARIANTS",
]

CONTROLLER_TYPES = ("orbit", "trackball")
FRAMING_POLICIES = ("elevated_frontal", "top_down")


@dataclass
class CameraSettings:
    """Camera controller and projection settings."""

    controller: str = "orbit"  # "orbit" or "trackball"
    framing: str = "elevated_frontal"  # "elevated_frontal" or "top_down"
    autorotate: bool = True

    # Damped orbit
    orbit_damping: float = 0.08
    orbit_autorotate_speed: float = 0.25  # 2*pi/3600 * speed rad per frame

    # Trackball
    trackball_damping: float = 0.2
    trackball_autorotate_step: float = 0.0005  # rad per frame

    # Projection
    fov_degrees: float = 50.0
    near: float = 0.01
    far: float = 100.0

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for easy serialization."""
        return asdict(self)


@dataclass
class DisplaySettings:
    """Point rendering and panel settings."""

    point_size: float = 3.0
    point_size_min: float = 1.0
    point_size_max: float = 5.0
    point_size_step: float = 0.5
    point_scale: float = 0.001  # World units per slider unit
    dark_background: bool = False
    title: str = "3D Scan"

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for easy serialization."""
        return asdict(self)


@dataclass
class ViewerConfig:
    """Main viewer configuration."""

    # Snapshot source (path or http(s) URL)
    source: str = ""

    # Cosmetic class name carried for embedding pages; no behaviour
    css_class: str | None = None

    # Network
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 8080

    # Loop / transport
    frame_rate: float = 60.0
    request_timeout: float = 30.0

    # Sub-configurations
    subject_filter: SubjectFilter = field(default_factory=SubjectFilter)
    camera: CameraSettings = field(default_factory=CameraSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "css_class": self.css_class,
            "host": self.host,
            "port": self.port,
            "frame_rate": self.frame_rate,
            "request_timeout": self.request_timeout,
            "subject_filter": self.subject_filter.to_dict(),
            "camera": self.camera.to_dict(),
            "display": self.display.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViewerConfig:
        """Create ViewerConfig from dictionary.

        Unknown keys raise ConfigError rather than being silently dropped.
        """
        data = dict(data)
        nested = {
            "subject_filter": SubjectFilter,
            "camera": CameraSettings,
            "display": DisplaySettings,
        }
        for key, section_cls in nested.items():
            if key in data:
                data[key] = _build_section(section_cls, data[key], key)
        return _build_section(cls, data, None)

    @classmethod
    def for_variant(cls, variant: str, source: str = "", **overrides: Any) -> ViewerConfig:
        """Create a config from one of the two viewer presets.

        - ``orbit``: damped orbit, elevated-frontal framing, height fraction 0.45
        - ``trackball``: trackball, top-down Z-up framing, height fraction 0.5
        """
        config = cls(source=source, **overrides)
        return config.apply_variant(variant)

    def apply_variant(self, variant: str) -> ViewerConfig:
        """Switch controller, framing and height fraction to a preset in place.

        Other settings, including the rest of the subject filter, are kept.
        """
        if variant not in VARIANTS:
            raise ConfigError(
                f"Unknown variant '{variant}', expected one of {sorted(VARIANTS)}",
                field_name="variant",
            )
        preset = VARIANTS[variant]
        self.subject_filter.height_fraction = preset["height_fraction"]
        self.camera.controller = variant
        self.camera.framing = preset["framing"]
        return self

    def validate(self) -> ViewerConfig:
        """Check value ranges, raising ConfigError on the first violation."""
        if not self.source:
            raise ConfigError("A snapshot source is required", field_name="source")
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Port out of range: {self.port}", field_name="port")
        if self.frame_rate <= 0:
            raise ConfigError(
                f"frame_rate must be positive, got {self.frame_rate}", field_name="frame_rate"
            )
        if self.request_timeout <= 0:
            raise ConfigError(
                f"request_timeout must be positive, got {self.request_timeout}",
                field_name="request_timeout",
            )

        for name in ("depth_fraction", "height_fraction"):
            value = getattr(self.subject_filter, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(
                    f"{name} must be within [0, 1], got {value}",
                    field_name=f"subject_filter.{name}",
                )

        camera = self.camera
        if camera.controller not in CONTROLLER_TYPES:
            raise ConfigError(
                f"Unknown controller '{camera.controller}'", field_name="camera.controller"
            )
        if camera.framing not in FRAMING_POLICIES:
            raise ConfigError(f"Unknown framing '{camera.framing}'", field_name="camera.framing")
        for name in ("orbit_damping", "trackball_damping"):
            value = getattr(camera, name)
            if not 0.0 < value <= 1.0:
                raise ConfigError(
                    f"{name} must be within (0, 1], got {value}", field_name=f"camera.{name}"
                )
        if not 0.0 < camera.fov_degrees < 180.0:
            raise ConfigError(
                f"fov_degrees must be within (0, 180), got {camera.fov_degrees}",
                field_name="camera.fov_degrees",
            )
        if not 0.0 < camera.near < camera.far:
            raise ConfigError(
                f"Expected 0 < near < far, got near={camera.near}, far={camera.far}",
                field_name="camera.near",
            )

        display = self.display
        if not display.point_size_min <= display.point_size <= display.point_size_max:
            raise ConfigError(
                f"point_size {display.point_size} outside "
                f"[{display.point_size_min}, {display.point_size_max}]",
                field_name="display.point_size",
            )
        if display.point_size_step <= 0:
            raise ConfigError(
                "point_size_step must be positive", field_name="display.point_size_step"
            )
        return self


VARIANTS: dict[str, dict[str, Any]] = {
    "orbit": {"framing": "elevated_frontal", "height_fraction": 0.45},
    "trackball": {"framing": "top_down", "height_fraction": 0.5},
}


def _build_section(section_cls: type, data: Any, key: str | None) -> Any:
    if isinstance(data, section_cls):
        return data
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping, got {type(data).__name__}", field_name=key or "<root>"
        )
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        prefix = f"{key}." if key else ""
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(unknown)}",
            field_name=prefix + unknown[0],
        )
    return section_cls(**data)
