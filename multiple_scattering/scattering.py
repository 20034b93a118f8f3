"""Multiple scattering between particles in a 2D acoustic medium.

Mathematical formulation
------------------------
Each particle j scatters an outgoing field expanded about its origin x_j,

    u_j(x) = sum_n A_n^j H_n^(1)(k |x - x_j|) e^{i n theta_j},

excited by the incident field plus every other particle's scattered field,
re-expanded about x_j with Graf's addition theorem:

    f^j = g^j + sum_{l != j} U(x_j - x_l) A^l,
    U(y)_{mn} = H_{n-m}^(1)(k |y|) e^{i (n-m) theta_y},

where g^j are the incident coefficients about x_j. With A^l = -T^l f^l:

    S f = g,   S_jj = I,   S_jl = U(x_j - x_l) T^l   (j != l)

The total field outside all particles is

    u(x) = u_inc(x) + sum_j sum_n A_n^j H_n^(1)(k |x - x_j|) e^{i n theta_j}.

Performance
-----------
    T-matrices: one per congruence class of particles
    Assembly  : O(P^2 M^2) special-function evaluations
    Solve     : O((P (2M+1))^3) direct (numpy.linalg.solve)
"""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
from scipy.special import h1vp, hankel1, jv, jvp

from multiple_scattering.physics import Acoustic, Particle, PhysicalProperties
from multiple_scattering.result import FrequencySimulationResult
from multiple_scattering.shapes import DEFAULT_NUM_BOUNDARY_POINTS, boundary_points
from multiple_scattering.sources import (
    Source,
    outgoing_basis_function,
    regular_basis_function,
)
from multiple_scattering.t_matrix import internal_coefficients, t_matrix

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_BASIS_ORDER: int = 5
CONDITION_WARNING_THRESHOLD: float = 1e10


# ---------------------------------------------------------------------------
# T-matrices
# ---------------------------------------------------------------------------
def get_t_matrices(
    medium: PhysicalProperties,
    particles: Sequence[Particle],
    omega: float,
    basis_order: int,
) -> List[np.ndarray]:
    """T-matrix of every particle, computed once per congruence class.

    Particles are scanned in order against the congruence classes found so
    far; a congruent match reuses the stored matrix, otherwise a new matrix
    is computed and a new class recorded. Candidates are first narrowed to
    particles with the same shape type, dimension and medium type, which
    never changes the result.

    Returns
    -------
    t_matrices : list of np.ndarray, one per particle, in input order
    """
    t_matrices: List[np.ndarray] = []

    # Particles unique up to congruence, and their T-matrices
    unique_particles: List[Particle] = []
    unique_t_matrices: List[np.ndarray] = []
    candidates: Dict[Tuple[type, int, type], List[int]] = defaultdict(list)

    for p in particles:
        key = (type(p.shape), p.shape.dim, type(p.medium))

        found = None
        for u in candidates[key]:
            if p.iscongruent(unique_particles[u]):
                found = u
                break

        if found is None:
            found = len(unique_particles)
            unique_particles.append(p)
            unique_t_matrices.append(t_matrix(p.shape, p.medium, medium, omega, basis_order))
            candidates[key].append(found)

        t_matrices.append(unique_t_matrices[found])

    logger.debug(
        "T-matrices: %d particles, %d congruence classes (omega=%.3g, M=%d)",
        len(t_matrices), len(unique_t_matrices), omega, basis_order,
    )
    return t_matrices


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------
def outgoing_translation_matrix(
    medium: Acoustic,
    basis_order: int,
    omega: float,
    x: np.ndarray,
) -> np.ndarray:
    """Graf re-expansion of outgoing waves into regular waves.

    For |z| < |x|,

        H_n(k |x + z|) e^{i n theta_{x+z}} = sum_m U_{mn} J_m(k |z|) e^{i m theta_z},
        U_{mn} = H_{n-m}^(1)(k |x|) e^{i (n-m) theta_x}.

    Parameters
    ----------
    medium : Acoustic
    basis_order : int
        Truncation order M.
    omega : float
        Angular frequency [rad/s].
    x : np.ndarray, shape (2,)
        Centre of the regular expansion minus centre of the outgoing waves.

    Returns
    -------
    U : np.ndarray, complex128, shape (2M+1, 2M+1)
    """
    x = np.asarray(x, dtype=float)
    k = omega / medium.c
    dist = np.linalg.norm(x)
    if dist == 0:
        raise ValueError("Cannot translate outgoing waves by a zero displacement")
    theta = np.arctan2(x[1], x[0])

    ms = np.arange(-basis_order, basis_order + 1)
    orders = ms[None, :] - ms[:, None]  # (2M+1, 2M+1), n - m
    return hankel1(orders, k * dist) * np.exp(1j * orders * theta)


def _warn_overlaps(particles: Sequence[Particle]) -> None:
    for j in range(len(particles)):
        for l in range(j + 1, len(particles)):
            dist = np.linalg.norm(particles[j].origin - particles[l].origin)
            if dist <= particles[j].outer_radius() + particles[l].outer_radius():
                logger.warning(
                    "Particles %d and %d are closer than their outer radii (%.3g); "
                    "the multipole expansion may not converge", j, l, dist,
                )


def scattering_matrix(
    medium: Acoustic,
    particles: Sequence[Particle],
    t_matrices: Sequence[np.ndarray],
    omega: float,
    basis_order: int,
) -> np.ndarray:
    """Multiple-scattering matrix S coupling all particles.

    Solving S f = g for the stacked incident coefficients g gives the
    exciting coefficients f; particle j scatters A^j = -T^j f^j.

    Returns
    -------
    S : np.ndarray, complex128, shape (P (2M+1), P (2M+1))
    """
    if len(particles) != len(t_matrices):
        raise ValueError(f"{len(particles)} particles but {len(t_matrices)} T-matrices")

    H = 2 * basis_order + 1
    P = len(particles)
    S = np.eye(H * P, dtype=np.complex128)  # (HP, HP)

    for j in range(P):
        for l in range(P):
            if j == l:
                continue
            U = outgoing_translation_matrix(
                medium, basis_order, omega, particles[j].origin - particles[l].origin,
            )
            S[j * H:(j + 1) * H, l * H:(l + 1) * H] = U @ t_matrices[l]

    if not np.all(np.isfinite(S)):
        raise ValueError("Scattering matrix contains non-finite values")
    return S


def solve_scattering(S: np.ndarray, incident: np.ndarray) -> np.ndarray:
    """Solve S f = g for the exciting coefficients f.

    Parameters
    ----------
    S : np.ndarray, complex128, shape (N, N)
    incident : np.ndarray, complex128, shape (N,)

    Returns
    -------
    exciting : np.ndarray, complex128, shape (N,)
    """
    if not np.all(np.isfinite(incident)):
        raise ValueError("Incident coefficients contain non-finite values")

    cond = np.linalg.cond(S)
    if cond > CONDITION_WARNING_THRESHOLD:
        logger.warning("High condition number: %.2e (N=%d)", cond, S.shape[0])
    else:
        logger.debug("Scattering matrix condition: %.2e (N=%d)", cond, S.shape[0])

    exciting = np.linalg.solve(S, incident)

    if not np.all(np.isfinite(exciting)):
        n_bad = int(np.sum(~np.isfinite(exciting)))
        raise ValueError(f"Scattering solution contains {n_bad} non-finite values")
    return exciting


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------
class FrequencySimulation:
    """Particles in a medium lit by a source, solved frequency by frequency.

    Parameters
    ----------
    medium : Acoustic
        Medium surrounding the particles.
    particles : sequence of Particle
    source : Source
        Incident field; must radiate into ``medium``.
    """

    def __init__(self, medium: Acoustic, particles: Sequence[Particle], source: Source):
        particles = list(particles)
        for i, p in enumerate(particles):
            if p.dim != medium.dim:
                raise ValueError(
                    f"Particle {i} is {p.dim}D but the medium is {medium.name()}"
                )
        if source.medium != medium:
            raise ValueError(f"Source medium {source.medium} differs from simulation medium {medium}")

        self.medium = medium
        self.particles = particles
        self.source = source
        _warn_overlaps(particles)

    def basis_coefficients(
        self,
        omega: float,
        basis_order: int = DEFAULT_BASIS_ORDER,
    ) -> Tuple[np.ndarray, np.ndarray, List[np.ndarray]]:
        """Exciting and scattered coefficients of every particle.

        Returns
        -------
        exciting : np.ndarray, complex128, shape (2M+1, P)
        scattered : np.ndarray, complex128, shape (2M+1, P)
        t_matrices : list of np.ndarray
        """
        H = 2 * basis_order + 1
        P = len(self.particles)
        if P == 0:
            empty = np.zeros((H, 0), dtype=np.complex128)
            return empty, empty, []

        t_matrices = get_t_matrices(self.medium, self.particles, omega, basis_order)
        S = scattering_matrix(self.medium, self.particles, t_matrices, omega, basis_order)

        incident = np.concatenate([
            self.source.coefficients(p.origin, omega, basis_order) for p in self.particles
        ])  # (HP,)
        exciting = solve_scattering(S, incident).reshape(P, H).T  # (H, P)

        scattered = np.column_stack([
            -t_matrices[j] @ exciting[:, j] for j in range(P)
        ])  # (H, P)
        return exciting, scattered, t_matrices

    def field(
        self,
        omega: float,
        x: np.ndarray,
        basis_order: int = DEFAULT_BASIS_ORDER,
    ) -> np.ndarray:
        """Total field at positions ``x``, shape (N, 2), for one frequency.

        Positions inside a particle get that particle's internal field.
        """
        x = np.atleast_2d(np.asarray(x, dtype=float))  # (N, 2)
        if omega == 0:
            return np.zeros(len(x), dtype=np.complex128)

        exciting, scattered, t_matrices = self.basis_coefficients(omega, basis_order)

        inside = np.full(len(x), -1, dtype=int)  # (N,), index of enclosing particle
        for j, p in enumerate(self.particles):
            for i, xi in enumerate(x):
                if inside[i] < 0 and xi in p:
                    inside[i] = j
        outside = inside < 0

        u = np.zeros(len(x), dtype=np.complex128)  # (N,)
        if np.any(outside):
            xo = x[outside]
            u_out = np.asarray(self.source.field(xo, omega), dtype=np.complex128)
            for j, p in enumerate(self.particles):
                basis = outgoing_basis_function(self.medium, omega, basis_order, xo - p.origin)
                u_out = u_out + basis @ scattered[:, j]
            u[outside] = u_out

        for j, p in enumerate(self.particles):
            mask = inside == j
            if not np.any(mask):
                continue
            B = internal_coefficients(p, self.medium, t_matrices[j], exciting[:, j], omega)
            if not np.any(B):
                continue
            basis = regular_basis_function(p.medium, omega, basis_order, x[mask] - p.origin)
            u[mask] = basis @ B

        return u

    def run(
        self,
        omegas: Union[float, Sequence[float]],
        x: np.ndarray,
        basis_order: int = DEFAULT_BASIS_ORDER,
    ) -> FrequencySimulationResult:
        """Total field at listener positions for one or several frequencies.

        Parameters
        ----------
        omegas : float or sequence of float
            Angular frequencies [rad/s].
        x : np.ndarray, shape (N, 2)
            Listener positions.
        basis_order : int
            Truncation order M of every particle's expansion.

        Returns
        -------
        FrequencySimulationResult with field shape (N, W, 1)
        """
        omegas = np.atleast_1d(np.asarray(omegas, dtype=float))
        x = np.atleast_2d(np.asarray(x, dtype=float))

        logger.info(
            "Frequency simulation: %d particles, %d positions, %d frequencies, M=%d",
            len(self.particles), len(x), len(omegas), basis_order,
        )
        field = np.zeros((len(x), len(omegas)), dtype=np.complex128)  # (N, W)
        for w, omega in enumerate(omegas):
            field[:, w] = self.field(omega, x, basis_order)
            logger.debug("omega=%.4g done (%d/%d)", omega, w + 1, len(omegas))

        return FrequencySimulationResult(field, x, omegas)


def basis_coefficients(
    sim: FrequencySimulation,
    omega: float,
    basis_order: int = DEFAULT_BASIS_ORDER,
) -> np.ndarray:
    """Scattered coefficients of every particle, shape (2M+1, P)."""
    _, scattered, _ = sim.basis_coefficients(omega, basis_order)
    return scattered


# ---------------------------------------------------------------------------
# Boundary data
# ---------------------------------------------------------------------------
def _radial_expansion(
    regular: np.ndarray,
    outgoing: np.ndarray,
    k: complex,
    x: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Value and radial derivative of sum_m (a_m J_m(k r) + b_m H_m(k r)) e^{i m theta}.

    ``regular`` and ``outgoing`` hold a_m and b_m for m = -M..M; ``x`` is
    (N, 2) relative to the expansion centre. Returns two (N,) arrays.
    """
    M = (len(regular) - 1) // 2
    ms = np.arange(-M, M + 1)
    r = np.linalg.norm(x, axis=1)[:, None]  # (N, 1)
    theta = np.arctan2(x[:, 1], x[:, 0])[:, None]  # (N, 1)
    angular = np.exp(1j * ms * theta)  # (N, 2M+1)
    kr = k * r

    value = (jv(ms, kr) * regular + hankel1(ms, kr) * outgoing) * angular
    derivative = k * (jvp(ms, kr) * regular + h1vp(ms, kr) * outgoing) * angular
    return value.sum(axis=1), derivative.sum(axis=1)


def boundary_data(
    particle: Particle,
    sim: FrequencySimulation,
    omegas: Union[float, Sequence[float]],
    basis_order: int = DEFAULT_BASIS_ORDER,
    num_points: int = DEFAULT_NUM_BOUNDARY_POINTS,
    dr: float = 1e-8,
) -> Tuple[
    Tuple[FrequencySimulationResult, FrequencySimulationResult],
    Tuple[FrequencySimulationResult, FrequencySimulationResult],
]:
    """Field and traction just inside and just outside a particle's boundary.

    Traction is the normal derivative of the field over the density on
    that side, (1/rho) du/dn. Across a penetrable boundary both are
    continuous; a sound-soft particle has zero field outside and a rigid
    one zero traction outside.

    Listeners sit at ``boundary_points(shape, num_points, dr=-dr)`` inside
    and ``dr=+dr`` outside. Outside, the field is the particle's local
    expansion sum_m (f_m J_m + A_m H_m) e^{i m theta} with f its exciting
    and A its scattered coefficients; inside, sum_m B_m J_m(k_p r) e^{i m theta}.

    Parameters
    ----------
    particle : Particle
        One of ``sim.particles``.
    sim : FrequencySimulation
    omegas : float or sequence of float
        Angular frequencies [rad/s].
    basis_order : int
        Truncation order M.
    num_points : int
        Number of boundary points.
    dr : float
        Relative radial offset of the listeners from the boundary.

    Returns
    -------
    field_results : (inside, outside) FrequencySimulationResult
    traction_results : (inside, outside) FrequencySimulationResult
    """
    if particle not in sim.particles:
        raise ValueError("boundary_data needs one of the simulation's particles")
    if sim.medium.rho == 0:
        raise ValueError("Traction is not defined in a medium with zero density")
    j = sim.particles.index(particle)

    omegas = np.atleast_1d(np.asarray(omegas, dtype=float))
    inside_x = boundary_points(particle.shape, num_points, dr=-dr)  # (N, 2)
    outside_x = boundary_points(particle.shape, num_points, dr=dr)  # (N, 2)

    shape = (len(inside_x), len(omegas))
    field_in = np.zeros(shape, dtype=np.complex128)
    field_out = np.zeros(shape, dtype=np.complex128)
    traction_in = np.zeros(shape, dtype=np.complex128)
    traction_out = np.zeros(shape, dtype=np.complex128)

    for w, omega in enumerate(omegas):
        if omega == 0:
            continue
        exciting, scattered, t_matrices = sim.basis_coefficients(omega, basis_order)
        f = exciting[:, j]

        u, du = _radial_expansion(f, scattered[:, j], omega / sim.medium.c, outside_x - particle.origin)
        field_out[:, w] = u
        traction_out[:, w] = du / sim.medium.rho

        B = internal_coefficients(particle, sim.medium, t_matrices[j], f, omega)
        if not np.any(B):
            continue
        u, du = _radial_expansion(
            B, np.zeros_like(B), omega / particle.medium.c, inside_x - particle.origin,
        )
        field_in[:, w] = u
        traction_in[:, w] = du / particle.medium.rho

    logger.debug(
        "Boundary data: particle %d, %d points, %d frequencies", j, len(inside_x), len(omegas),
    )
    return (
        (
            FrequencySimulationResult(field_in, inside_x, omegas),
            FrequencySimulationResult(field_out, outside_x, omegas),
        ),
        (
            FrequencySimulationResult(traction_in, inside_x, omegas),
            FrequencySimulationResult(traction_out, outside_x, omegas),
        ),
    )
