"""
Run a frequency-domain multiple-scattering simulation and store it in HDF5.

Scene
-----
    A row of identical circular particles along the x axis, lit by a plane
    wave travelling along +x. All particles are congruent, so only one
    T-matrix is computed per frequency. The total field is sampled on a
    regular grid covering the particles plus a margin.

Output
------
    <output>.h5
        config/            attrs: particle/medium parameters
        positions          (N, 2) listener positions [m]
        omega              (W,)   angular frequencies [rad/s]
        field              (N, W) complex total field

Usage
-----
    python scripts/run_simulation.py                          # defaults
    python scripts/run_simulation.py --n-particles 8 --omegas 0.5 1.0 2.0
    python scripts/run_simulation.py --particle-rho 0 --particle-c 0   # sound-soft
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import h5py
import numpy as np

# ---------------------------------------------------------------------------
# Project imports
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from multiple_scattering.physics import Acoustic, Particle
from multiple_scattering.result import FrequencySimulationResult
from multiple_scattering.scattering import DEFAULT_BASIS_ORDER, FrequencySimulation
from multiple_scattering.shapes import Box, Circle, bounding_box, points_in_shape
from multiple_scattering.sources import plane_source

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run_simulation")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
RESULTS_DIR = PROJECT_ROOT / "results"
GRID_MARGIN_M: float = 2.0  # margin around the particles [m]


def build_particles(
    n_particles: int,
    radius_m: float,
    spacing_m: float,
    medium: Acoustic,
):
    """Row of congruent circles centred on the origin."""
    xs = (np.arange(n_particles) - 0.5 * (n_particles - 1)) * spacing_m
    return [Particle(medium, Circle([x, 0.0], radius_m)) for x in xs]


def save_result(
    path: Path,
    result: FrequencySimulationResult,
    args: argparse.Namespace,
) -> None:
    """Write the result and the scene parameters to HDF5."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with h5py.File(path, "w") as f:
        cfg = f.create_group("config")
        cfg.attrs["n_particles"] = args.n_particles
        cfg.attrs["radius_m"] = args.radius
        cfg.attrs["spacing_m"] = args.spacing
        cfg.attrs["particle_rho"] = args.particle_rho
        cfg.attrs["particle_c"] = args.particle_c
        cfg.attrs["medium_rho"] = args.medium_rho
        cfg.attrs["medium_c"] = args.medium_c
        cfg.attrs["basis_order"] = args.basis_order

        f.create_dataset("positions", data=result.x)
        f.create_dataset("omega", data=result.omega)
        f.create_dataset("field", data=result.get_field(), dtype=np.complex128)

    logger.info("Result saved: %s", path)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------
def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="2D acoustic multiple scattering by a row of circles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--n-particles", type=int, default=4, help="Number of circles")
    parser.add_argument("--radius", type=float, default=0.5, help="Circle radius [m]")
    parser.add_argument("--spacing", type=float, default=2.0, help="Centre spacing [m]")
    parser.add_argument("--particle-rho", type=float, default=0.5, help="Particle density")
    parser.add_argument("--particle-c", type=float, default=0.5, help="Particle wave speed")
    parser.add_argument("--medium-rho", type=float, default=1.0, help="Medium density")
    parser.add_argument("--medium-c", type=float, default=1.0, help="Medium wave speed")
    parser.add_argument(
        "--omegas",
        nargs="+",
        type=float,
        default=[0.5, 1.0],
        help="Angular frequencies [rad/s]",
    )
    parser.add_argument(
        "--basis-order",
        type=int,
        default=DEFAULT_BASIS_ORDER,
        help="Truncation order M of each particle's expansion",
    )
    parser.add_argument("--res", type=int, default=40, help="Grid steps per axis")
    parser.add_argument(
        "--output",
        type=Path,
        default=RESULTS_DIR / "simulation.h5",
        help="HDF5 output path",
    )
    return parser.parse_args()


def main() -> None:
    """Main entry point."""
    args = parse_args()

    medium = Acoustic(args.medium_rho, args.medium_c, 2)
    particle_medium = Acoustic(args.particle_rho, args.particle_c, 2)
    particles = build_particles(args.n_particles, args.radius, args.spacing, particle_medium)
    source = plane_source(medium, position=[0.0, 0.0], direction=[1.0, 0.0])

    box = bounding_box([p.shape for p in particles])
    region = Box(box.origin, box.dimensions + 2.0 * GRID_MARGIN_M)
    grid, _ = points_in_shape(region, res=args.res)
    logger.info(
        "Scene: %d particles, grid %d points over %.1f x %.1f m",
        len(particles), len(grid), region.dimensions[0], region.dimensions[1],
    )

    sim = FrequencySimulation(medium, particles, source)

    t0 = time.time()
    result = sim.run(args.omegas, grid, basis_order=args.basis_order)
    logger.info("Solved %d frequencies in %.1fs", len(args.omegas), time.time() - t0)

    field = result.get_field()
    for w, omega in enumerate(result.omega):
        logger.info("  omega=%.3f: max |u| = %.3f", omega, float(np.max(np.abs(field[:, w]))))

    save_result(args.output, result, args)


if __name__ == "__main__":
    main()
