"""
Animated 3D preview of the orrery (orbit lines, bodies and the camera view).

Render space is y-up; matplotlib's 3D axes are z-up, so points are drawn as
(x, z, y).
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  registers the 3d projection

from orrery.app import Orrery
from orrery.bodies import CATEGORY_LABELS, CATEGORY_ORDER
from orrery.camera import CameraState

logger = logging.getLogger(__name__)

CATEGORY_COLORS = {
    'star': 'gold',
    'planet': 'tab:blue',
    'dwarf_planet': 'tab:purple',
    'moon': 'lightgray',
    'artificial_satellite': 'tab:green',
    'comet': 'tab:red',
}
MIN_VIEW_HALF_WIDTH = 0.05


def _to_axes(points: np.ndarray) -> np.ndarray:
    return np.asarray(points)[..., [0, 2, 1]]


def camera_view(camera: CameraState) -> tuple[float, float, float]:
    """
    Elevation and azimuth (degrees) of the camera seen from its target, plus a
    half-width for the axis limits proportional to the camera distance.
    """
    dx, dy, dz = camera.position - camera.target
    horizontal = math.hypot(dx, dz)
    elev = math.degrees(math.atan2(dy, horizontal))
    azim = math.degrees(math.atan2(dz, dx))
    half_width = max(MIN_VIEW_HALF_WIDTH, 0.6 * math.sqrt(dx * dx + dy * dy + dz * dz))
    return elev, azim, half_width


def create_animation(orrery: Orrery, n_frames: int = 300, orbit_segments: int = 128,
                     show_moon_orbits: bool = True):
    """
    Build the figure and the FuncAnimation driving orrery.tick once per frame.

    Keys: space pauses, +/- change the time scale by one step, h toggles the
    small-target highlights.

    Returns:
        (fig, anim)
    """
    bodies = orrery.bodies
    scene = orrery.scene
    interval_s = orrery.config.frame_interval_s

    fig = plt.figure(figsize=(12, 10))
    ax = fig.add_subplot(111, projection='3d')
    ax.set_xlabel('X (AU)')
    ax.set_ylabel('Z (AU)')
    ax.set_zlabel('Y (AU)')
    ax.set_title('Solar System')

    # Orbit lines; moon orbits follow their parent so they are refreshed per frame
    orbit_lines = {}
    for body_id in scene.order:
        body = bodies[body_id]
        if body.parent_id and body.parent_id != 'sun' and not show_moon_orbits:
            continue
        path = scene.orbit_line(body_id, orbit_segments)
        if path is None:
            continue
        path = _to_axes(path)
        line, = ax.plot(path[:, 0], path[:, 1], path[:, 2], '-',
                        color=CATEGORY_COLORS.get(body.category, 'gray'), alpha=0.4, linewidth=0.8)
        orbit_lines[body_id] = line

    # One scatter per category so the legend reads like the catalog groups
    scatters = {}
    initial = _to_axes(scene.world)
    for category in CATEGORY_ORDER:
        ids = [b for b in scene.order if bodies[b].category == category]
        if not ids:
            continue
        sizes = [200.0 if category == 'star' else max(8.0, 4000.0 * bodies[b].visual_radius_au()) for b in ids]
        pts = initial[[scene.handle(b) for b in ids]]
        scatter = ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], s=sizes, c=CATEGORY_COLORS.get(category, 'gray'),
                             marker='*' if category == 'star' else 'o',
                             label=CATEGORY_LABELS[category], depthshade=False)
        scatters[category] = (ids, scatter)
    ax.legend(loc='upper right')

    labels = {b: ax.text(0, 0, 0, bodies[b].name_en, fontsize=8, color='black', ha='left', va='bottom')
              for b in scene.order if bodies[b].category in ('star', 'planet', 'dwarf_planet')}

    status_text = fig.text(0.02, 0.95, '', fontsize=11, family='monospace', verticalalignment='top',
                           bbox=dict(boxstyle='round', facecolor='wheat', alpha=0.8))

    def on_key_press(event):
        controls = orrery.controls
        if event.key == ' ':
            controls.toggle_pause()
        elif event.key in ('+', '='):
            controls.set_time_scale(orrery.simulation.time_scale + 0.5)
        elif event.key in ('-', '_'):
            controls.set_time_scale(orrery.simulation.time_scale - 0.5)
        elif event.key == 'h':
            controls.toggle_highlights()

    fig.canvas.mpl_connect('key_press_event', on_key_press)

    def update(frame):
        camera = orrery.tick(interval_s)
        world = _to_axes(scene.world)

        for category, (ids, scatter) in scatters.items():
            pts = world[[scene.handle(b) for b in ids]]
            scatter._offsets3d = (pts[:, 0], pts[:, 1], pts[:, 2])

        for body_id, line in orbit_lines.items():
            parent_id = bodies[body_id].parent_id
            if parent_id and parent_id != 'sun':
                path = _to_axes(scene.orbit_line(body_id, orbit_segments))
                line.set_data(path[:, 0], path[:, 1])
                line.set_3d_properties(path[:, 2])

        highlighted = orrery.highlighted_ids()
        for body_id, label in labels.items():
            p = world[scene.handle(body_id)]
            label.set_position((p[0], p[1]))
            label.set_3d_properties(p[2], zdir=None)
            label.set_color('red' if body_id in highlighted else 'black')

        elev, azim, half_width = camera_view(camera)
        center = _to_axes(camera.target)
        ax.view_init(elev=elev, azim=azim)
        ax.set_xlim([center[0] - half_width, center[0] + half_width])
        ax.set_ylim([center[1] - half_width, center[1] + half_width])
        ax.set_zlim([center[2] - half_width, center[2] + half_width])

        sim = orrery.simulation
        status_text.set_text(
            f"t = {sim.elapsed_years:8.3f} yr   speed x{sim.time_scale:.1f}"
            f"{'   PAUSED' if sim.paused else ''}"
            f"{'   [' + orrery.controls.selected_id + ']' if orrery.controls.selected_id else ''}"
        )
        return [s for _, s in scatters.values()] + list(orbit_lines.values())

    anim = FuncAnimation(fig, update, frames=n_frames, interval=1000.0 * interval_s, blit=False)
    return fig, anim


def animate(orrery: Orrery, n_frames: int = 300, select: Optional[str] = None,
            save_path: Optional[str] = None) -> None:
    """Show the preview, or write it to save_path (.gif or .mp4)."""
    if select:
        orrery.controls.select_body(select)
    fig, anim = create_animation(orrery, n_frames=n_frames)
    if save_path:
        path = Path(save_path)
        logger.info("Saving %d frames to %s", n_frames, path)
        anim.save(str(path), fps=orrery.config.fps)
        plt.close(fig)
    else:
        plt.show()
