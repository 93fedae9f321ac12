from __future__ import annotations

import os
import random
from collections.abc import Callable, Generator

import pytest

from app.config import AppSettings, OptimizerSettings, RenderSettings, TraversalSettings
from domain.models import AnnotationStyle
from domain.services.anti_overlap import OptimizerConfig
from tests.helpers.scene_fixtures import RecordingCanvasFactory


def _clear_som_env() -> None:
    for key in list(os.environ):
        if key.startswith("SOM_"):
            os.environ.pop(key, None)


_clear_som_env()


@pytest.fixture(autouse=True)
def clear_som_env() -> Generator[None, None, None]:
    _clear_som_env()
    yield
    _clear_som_env()


@pytest.fixture
def traversal_settings() -> TraversalSettings:
    return TraversalSettings(batch_size=15, limits="export")


@pytest.fixture
def render_settings() -> RenderSettings:
    return RenderSettings(renderer="pillow", export_scale=1.0)


@pytest.fixture
def optimizer_settings() -> OptimizerSettings:
    return OptimizerSettings(max_iterations=50, seed=7)


@pytest.fixture
def app_settings(
    traversal_settings: TraversalSettings,
    render_settings: RenderSettings,
    optimizer_settings: OptimizerSettings,
) -> AppSettings:
    return AppSettings(
        traversal=traversal_settings,
        render=render_settings,
        optimizer=optimizer_settings,
    )


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory


@pytest.fixture
def optimizer_config() -> OptimizerConfig:
    return OptimizerConfig()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def annotation_style() -> AnnotationStyle:
    return AnnotationStyle()


@pytest.fixture
def canvas_factory() -> RecordingCanvasFactory:
    return RecordingCanvasFactory()
