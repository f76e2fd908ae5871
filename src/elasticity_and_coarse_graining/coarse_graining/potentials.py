import logging
from typing import Callable, Optional, Sequence

import numpy as np

from elasticity_and_coarse_graining.exceptions import UndefinedBinError
from elasticity_and_coarse_graining.namespace import (Distribution,
                                                      TabulatedPotential)

logger = logging.getLogger(__name__)

# Gas constant in J / mol / K and calories to Joules, as used for kcal/mol energies.
_GAS_CONSTANT = 8.314
_JOULES_PER_CALORIE = 4.184

GRID_TOLERANCE = 1.0e-8


def compute_thermal_energy(temperature: float) -> float:
    """Thermal energy kT in kcal/mol, for a temperature in Kelvin."""
    return temperature * _GAS_CONSTANT / _JOULES_PER_CALORIE / 1000.0


def compute_pmf(
    distribution: Distribution, kT: float, jacobian: Callable[[np.ndarray], np.ndarray]
) -> TabulatedPotential:
    """Compute the potential of mean force.

        E(x) = -kT ln( P(x) / J(x) )

    The energy is undefined (NaN) wherever the probability or the Jacobian is not positive.

    Args:
        distribution: the probability distribution.
        kT: thermal energy.
        jacobian: function returning the volume element correction J(x).

    Returns:
        pmf: tabulated potential of mean force.
    """
    x = np.asarray(distribution.x, dtype=float)
    probability = np.asarray(distribution.probability, dtype=float)
    jacobian_correction = np.asarray(jacobian(x), dtype=float)

    energy = np.full(len(x), np.nan)
    mask = (probability > 0.0) & (jacobian_correction > 0.0)
    energy[mask] = -kT * np.log(probability[mask] / jacobian_correction[mask])
    return TabulatedPotential(x=x, energy=energy)


def align_to_grid(
    grid_x: Sequence[float],
    x: Sequence[float],
    y: Sequence[float],
    tolerance: float = GRID_TOLERANCE,
) -> np.ndarray:
    """Align tabulated data to a grid.

    Both the grid and the input x values are assumed to be increasing. An input point is copied to the
    grid point with the same x (within tolerance); input points that fall between grid points or outside
    the grid are skipped, and grid points without a matching input stay undefined.

    Args:
        grid_x: the x values of the grid.
        x: the x values of the input data.
        y: the input data.
        tolerance: tolerance on the x-coordinate comparison.

    Returns:
        aligned_y: the input data on the grid, NaN where there is no match.
    """
    aligned_y = np.full(len(grid_x), np.nan)

    input_index = 0
    grid_index = 0
    while input_index < len(x) and grid_index < len(grid_x):
        input_x = x[input_index]
        if abs(input_x - grid_x[grid_index]) < tolerance:
            aligned_y[grid_index] = y[input_index]
            input_index += 1
            grid_index += 1
        elif input_x < grid_x[grid_index]:
            input_index += 1
        else:
            grid_index += 1

    return aligned_y


def _is_defined(value: Optional[float]) -> bool:
    return value is not None and np.isfinite(value)


def _estimate_bin_energy(
    target_probability: float,
    probability_threshold: float,
    target_pmf: float,
    trial_pmf: Optional[float],
    previous_energy: Optional[float],
    relaxation_factor: float,
) -> float:
    if not _is_defined(target_probability) or target_probability < probability_threshold:
        raise UndefinedBinError("The target distribution is not sampled reliably in this bin.")

    if _is_defined(target_pmf) and _is_defined(trial_pmf) and _is_defined(previous_energy):
        # Correct the potential used in the trial run with the newly measured pmf.
        return previous_energy + relaxation_factor * (target_pmf - trial_pmf)

    if _is_defined(target_pmf):
        # No trial data for this bin: start from the target pmf.
        return target_pmf

    raise UndefinedBinError("There is no pmf to estimate the energy from.")


def relax_potential(
    previous_potential: Optional[TabulatedPotential],
    target_pmf: TabulatedPotential,
    trial_pmf: Optional[TabulatedPotential],
    relaxation_factor: float,
    probability_cutoff: float,
    observed_max_probability: float,
    target_probability: Sequence[float],
) -> TabulatedPotential:
    """Relax potential.

    Iterative Boltzmann inversion update. For each bin,

        E_new = E_previous + relaxation_factor * (PMF_target - PMF_trial).

    Bins where the target probability is below probability_cutoff * observed_max_probability are not
    sampled reliably and are left undefined. Where the trial data is missing (in particular on the
    first round, where there is no previous potential) the target pmf is used.

    All the inputs are assumed to be tabulated on the same grid.

    Args:
        previous_potential: the potential used in the trial run, or None.
        target_pmf: the pmf of the reference trajectory.
        trial_pmf: the pmf of the trial trajectory, or None.
        relaxation_factor: damping of the update.
        probability_cutoff: fraction of the maximum probability below which a bin is ignored.
        observed_max_probability: the maximum probability of the most recent distribution.
        target_probability: the probability of the reference trajectory.

    Returns:
        relaxed_potential: the updated potential, with NaN in the undefined bins.
    """
    probability_threshold = probability_cutoff * observed_max_probability
    number_of_bins = len(target_pmf.x)

    energy = np.full(number_of_bins, np.nan)
    number_of_undefined_bins = 0
    for i in range(number_of_bins):
        previous_energy = None if previous_potential is None else previous_potential.energy[i]
        trial_energy = None if trial_pmf is None else trial_pmf.energy[i]
        try:
            energy[i] = _estimate_bin_energy(
                target_probability[i],
                probability_threshold,
                target_pmf.energy[i],
                trial_energy,
                previous_energy,
                relaxation_factor,
            )
        except UndefinedBinError:
            number_of_undefined_bins += 1

    logger.debug(f"{number_of_undefined_bins} of {number_of_bins} bins are undefined after relaxation.")
    return TabulatedPotential(x=np.array(target_pmf.x, dtype=float), energy=energy)


def truncate_after_nth_sign_change(potential: TabulatedPotential, n: int) -> TabulatedPotential:
    """Truncate after the n-th sign change.

    A van der Waals potential is expected to be positive (repulsive) at short range, then to alternate in
    sign. Scanning from small to large x, the counter starts at zero, expecting a positive value; a value of
    the wrong sign increments the counter and flips the expected sign. Once the counter reaches n, the
    current and all subsequent bins are set to zero. Undefined values are set to zero.

    Args:
        potential: tabulated potential.
        n: number of sign changes to keep.

    Returns:
        truncated_potential: the potential, zeroed after the n-th sign change.
    """
    energy = np.zeros(len(potential.energy))
    number_of_sign_changes = 0
    for i, value in enumerate(potential.energy):
        if _is_defined(value):
            expect_positive = number_of_sign_changes % 2 == 0
            if (expect_positive and value < 0.0) or (not expect_positive and value > 0.0):
                number_of_sign_changes += 1

        if number_of_sign_changes >= n:
            break

        if _is_defined(value):
            energy[i] = value

    return TabulatedPotential(x=np.array(potential.x, dtype=float), energy=energy)
