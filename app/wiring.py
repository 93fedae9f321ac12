from __future__ import annotations

import random

from adapters.pillow.canvas import PillowCanvasFactory
from adapters.svg.canvas import SvgCanvasFactory
from app.config import AppSettings
from domain.ports.canvas import CanvasFactory
from domain.services.plan_annotation_batches import AnnotateScene
from domain.services.render_som_image import SomRenderer


def build_canvas_factory(settings: AppSettings) -> CanvasFactory:
    font_path = str(settings.render.font_path) if settings.render.font_path else None
    if settings.render.renderer == "svg":
        return SvgCanvasFactory(font_path=font_path)
    if settings.render.renderer == "pillow":
        return PillowCanvasFactory(font_path=font_path)
    msg = f"Unknown renderer: {settings.render.renderer}"
    raise ValueError(msg)


def build_renderer(settings: AppSettings) -> SomRenderer:
    seed = settings.optimizer.seed
    return SomRenderer(
        build_canvas_factory(settings),
        style=settings.style.to_annotation_style(),
        optimizer_config=settings.optimizer.to_optimizer_config(),
        rng=random.Random(seed) if seed is not None else None,
    )


def build_annotate_scene(settings: AppSettings) -> AnnotateScene:
    return AnnotateScene(
        build_renderer(settings),
        split_crowded=settings.render.split_crowded_batches,
        overlap_tolerance=settings.render.overlap_tolerance,
    )
