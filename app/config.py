from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import DEFAULT_INCLUDE_NODE_TYPES, AnnotationStyle
from domain.services.anti_overlap import OptimizerConfig
from domain.services.overlap_detection import DEFAULT_OVERLAP_TOLERANCE
from domain.services.select_nodes import (
    EXPORT_LIMITS,
    LIVE_LIMITS,
    TraversalConfig,
)

DEFAULT_CONFIG_PATH = Path("config/som.yaml")

RendererName = Literal["pillow", "svg"]
LimitsPreset = Literal["export", "live"]


def _split_string_list_value(raw_value: str) -> list[str]:
    raw = raw_value.strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1].strip()
    if not raw:
        return []
    return [
        token for token in (part.strip().strip("'").strip('"') for part in raw.split(",")) if token
    ]


class TraversalSettings(BaseModel):
    include_invisible: bool = False
    include_locked: bool = False
    min_node_area: float = Field(default=100.0, ge=0)
    include_node_types: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDE_NODE_TYPES)
    )
    batch_size: int = Field(default=15, gt=0)
    limits: LimitsPreset = "export"
    max_depth: int | None = Field(default=None, ge=0)
    max_nodes: int | None = Field(default=None, gt=0)

    @field_validator("include_node_types", mode="before")
    @classmethod
    def normalize_node_types(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            items = _split_string_list_value(value)
        elif isinstance(value, (list, tuple)):
            items = []
            for item in value:
                items.extend(_split_string_list_value(str(item)))
        else:
            items = _split_string_list_value(str(value))
        return [item.upper() for item in items]

    def to_traversal_config(self) -> TraversalConfig:
        limits = LIVE_LIMITS if self.limits == "live" else EXPORT_LIMITS
        return TraversalConfig(
            include_invisible=self.include_invisible,
            include_locked=self.include_locked,
            min_node_area=self.min_node_area,
            include_node_types=tuple(self.include_node_types),
            batch_size=self.batch_size,
            max_depth=limits.max_depth if self.max_depth is None else self.max_depth,
            max_nodes=limits.max_nodes if self.max_nodes is None else self.max_nodes,
        )


class StyleSettings(BaseModel):
    highlight_color: str = "#FF0040"
    highlight_opacity: float = Field(default=0.3, ge=0, le=1)
    highlight_stroke_width: float = Field(default=2.0, gt=0)
    label_background_color: str | None = None
    label_text_color: str = "#FFFFFF"
    label_padding: float = Field(default=4.0, ge=0)
    label_font_size: float = Field(default=14.0, gt=0)
    label_font_family: str = "Arial, sans-serif"
    label_border_radius: float = Field(default=3.0, ge=0)

    def to_annotation_style(self) -> AnnotationStyle:
        return AnnotationStyle(**self.model_dump())


class OptimizerSettings(BaseModel):
    max_iterations: int = Field(default=200, ge=0)
    initial_temperature: float = Field(default=100.0, gt=0)
    cooling_rate: float = Field(default=0.95, gt=0, le=1)
    nudge_radius: float = Field(default=20.0, gt=0)
    nudge_angles: int = Field(default=12, gt=0)
    overlap_weight: float = 10.0
    boundary_weight: float = 5.0
    distance_weight: float = 1.0
    keep_best: bool = False
    seed: int | None = None

    def to_optimizer_config(self) -> OptimizerConfig:
        return OptimizerConfig(**self.model_dump(exclude={"seed"}))


class RenderSettings(BaseModel):
    renderer: RendererName = "pillow"
    export_scale: float = Field(default=2.0, gt=0)
    split_crowded_batches: bool = True
    overlap_tolerance: float = Field(default=DEFAULT_OVERLAP_TOLERANCE, ge=0)
    font_path: Path | None = None

    @field_validator("renderer", mode="before")
    @classmethod
    def normalize_renderer(cls, value: object) -> str:
        return str(value).strip().lower() if value else "pillow"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SOM_", env_nested_delimiter="__")

    traversal: TraversalSettings = TraversalSettings()
    style: StyleSettings = StyleSettings()
    optimizer: OptimizerSettings = OptimizerSettings()
    render: RenderSettings = RenderSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("SOM_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
