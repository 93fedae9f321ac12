from __future__ import annotations

import logging
import math
import random
from collections.abc import Sequence
from dataclasses import dataclass, replace

from domain.models import BoundingBox, LabelPlacement

logger = logging.getLogger(__name__)

Rect = BoundingBox | LabelPlacement


@dataclass(frozen=True)
class OptimizerConfig:
    max_iterations: int = 200
    initial_temperature: float = 100.0
    cooling_rate: float = 0.95
    nudge_radius: float = 20.0
    nudge_angles: int = 12
    overlap_weight: float = 10.0
    boundary_weight: float = 5.0
    distance_weight: float = 1.0
    # Return the lowest-energy state seen instead of the last accepted one.
    keep_best: bool = False


def _as_box(rect: Rect) -> BoundingBox:
    return rect if isinstance(rect, BoundingBox) else rect.box


def overlap_area(a: Rect, b: Rect) -> float:
    return _as_box(a).intersection_area(_as_box(b))


def boundary_penalty(rect: Rect, canvas_width: float, canvas_height: float) -> float:
    penalty = 0.0
    if rect.x < 0:
        penalty += -rect.x * rect.height
    if rect.y < 0:
        penalty += -rect.y * rect.width
    right_overflow = rect.x + rect.width - canvas_width
    if right_overflow > 0:
        penalty += right_overflow * rect.height
    bottom_overflow = rect.y + rect.height - canvas_height
    if bottom_overflow > 0:
        penalty += bottom_overflow * rect.width
    return penalty


def calculate_energy(
    placements: Sequence[LabelPlacement],
    canvas_width: float,
    canvas_height: float,
    config: OptimizerConfig | None = None,
) -> float:
    config = config or OptimizerConfig()
    overlap = 0.0
    boundary = 0.0
    distance = 0.0
    count = len(placements)
    for i, label in enumerate(placements):
        for j in range(i + 1, count):
            overlap += overlap_area(label, placements[j])
        boundary += boundary_penalty(label, canvas_width, canvas_height)
        distance += math.hypot(label.x - label.anchor_x, label.y - label.anchor_y)
    return (
        overlap * config.overlap_weight
        + boundary * config.boundary_weight
        + distance * config.distance_weight
    )


def precompute_directions(num_angles: int, radius: float) -> list[tuple[int, int]]:
    step = 2 * math.pi / num_angles
    return [
        (round(math.cos(step * idx) * radius), round(math.sin(step * idx) * radius))
        for idx in range(num_angles)
    ]


def optimize_label_positions(
    placements: Sequence[LabelPlacement],
    canvas_width: float,
    canvas_height: float,
    config: OptimizerConfig | None = None,
    rng: random.Random | None = None,
) -> list[LabelPlacement]:
    """Nudge badges apart with simulated annealing.

    Each iteration picks one badge, tries every offset on a fixed ring,
    rescoring the whole configuration for each, and moves the badge to the
    best candidate when it lowers the energy. A worse best candidate is still
    taken with probability ``exp(-delta / temperature)`` while the temperature
    is above zero. The temperature cools every iteration and the full
    iteration budget is always spent.

    The input is never modified; the result has the same mark ids in the
    same order. Callers must pass a canvas with positive area.
    """
    if len(placements) <= 1:
        return [replace(label) for label in placements]

    config = config or OptimizerConfig()
    rng = rng or random.Random()
    current = [replace(label) for label in placements]
    directions = precompute_directions(config.nudge_angles, config.nudge_radius)

    temperature = config.initial_temperature
    current_energy = calculate_energy(current, canvas_width, canvas_height, config)
    initial_energy = current_energy
    best_state = list(current)
    best_state_energy = current_energy

    for _ in range(config.max_iterations):
        idx = rng.randrange(len(current))
        label = current[idx]

        best_dx = 0
        best_dy = 0
        best_energy = math.inf
        for dx, dy in directions:
            current[idx] = label.moved_to(label.x + dx, label.y + dy)
            candidate_energy = calculate_energy(current, canvas_width, canvas_height, config)
            if candidate_energy < best_energy:
                best_energy = candidate_energy
                best_dx = dx
                best_dy = dy
        current[idx] = label

        if best_energy < current_energy:
            current[idx] = label.moved_to(label.x + best_dx, label.y + best_dy)
            current_energy = best_energy
        elif (best_dx != 0 or best_dy != 0) and temperature > 0:
            # A fully cooled run only takes improvements.
            delta = best_energy - current_energy
            if rng.random() < math.exp(-delta / temperature):
                current[idx] = label.moved_to(label.x + best_dx, label.y + best_dy)
                current_energy = best_energy

        if config.keep_best and current_energy < best_state_energy:
            best_state = list(current)
            best_state_energy = current_energy

        temperature *= config.cooling_rate

    logger.debug(
        "Label optimisation for %d badges: energy %.1f -> %.1f (best %.1f).",
        len(current),
        initial_energy,
        current_energy,
        best_state_energy,
    )
    return best_state if config.keep_best else current
