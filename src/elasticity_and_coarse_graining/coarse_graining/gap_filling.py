from typing import List, Optional, Tuple

import numpy as np

from elasticity_and_coarse_graining.namespace import (LINEAR_AT_LARGE_X,
                                                      PERIODIC,
                                                      QUADRATIC_AT_ENDS,
                                                      TRUNCATE_AT_LARGE_X,
                                                      TabulatedPotential)


def find_nearest_defined_bins(
    energy: np.ndarray, is_periodic: bool
) -> Tuple[List[Optional[int]], List[Optional[int]]]:
    """Find nearest defined bins.

    For each bin, find the index of the closest defined bin at or before it, and at or after it.

    In the periodic case the last bin is the periodic image of the first and is ignored. The search then wraps
    around: the returned indices may be negative (defined bin found before wrapping backwards) or larger than
    the number of bins (found after wrapping forward). They must be taken modulo the number of bins.

    Args:
        energy: tabulated energies, NaN where undefined.
        is_periodic: whether the table is periodic.

    Returns:
        last_defined: index of the nearest defined bin to the left, or None.
        next_defined: index of the nearest defined bin to the right, or None.
    """
    number_of_bins = len(energy) - 1 if is_periodic else len(energy)
    is_defined = np.isfinite(energy[:number_of_bins])

    forward_start = -number_of_bins + 1 if is_periodic else 0
    backward_end = 2 * number_of_bins - 1 if is_periodic else number_of_bins - 1

    last_defined = [None] * number_of_bins
    last = None
    for i in range(forward_start, number_of_bins):
        if is_defined[i % number_of_bins]:
            last = i
        if i >= 0:
            last_defined[i] = last

    next_defined = [None] * number_of_bins
    next_ = None
    for i in range(backward_end, -1, -1):
        if is_defined[i % number_of_bins]:
            next_ = i
        if i < number_of_bins:
            next_defined[i] = next_

    return last_defined, next_defined


def fill_gaps(potential: TabulatedPotential, mode: str) -> TabulatedPotential:
    """Fill gaps in a tabulated potential.

    Undefined bins between two defined bins are linearly interpolated. Undefined bins at the edges are
    extrapolated according to the mode:

        - 'linear_at_large_x': at large x, E = E_last * (1 + (i - i_last) / N). Nearest value copied at small x.
        - 'quadratic_at_ends': a parabola centred on the midpoint of the known data, going through the
           nearest known point, at both ends.
        - 'truncate_at_large_x': left undefined at large x. Nearest value copied at small x.
        - 'periodic': the table wraps around, so there are no edges. The last bin is set to the first one.
        - anything else: the nearest known value is copied.

    Args:
        potential: the tabulated potential, NaN where undefined.
        mode: gap filling mode.

    Returns:
        filled_potential: a new tabulated potential with the gaps filled.
    """
    is_periodic = mode == PERIODIC
    energy = np.array(potential.energy, dtype=float)

    number_of_bins = len(energy) - 1 if is_periodic else len(energy)
    if number_of_bins <= 0:
        return TabulatedPotential(x=np.array(potential.x, dtype=float), energy=energy)

    last_defined, next_defined = find_nearest_defined_bins(energy, is_periodic)

    def _energy_at(index: int) -> float:
        return energy[index % number_of_bins]

    for i in range(number_of_bins):
        if np.isfinite(energy[i]):
            continue

        i_last = last_defined[i]
        i_next = next_defined[i]

        if i_last is not None and i_next is not None:
            energy[i] = (_energy_at(i_last) * (i_next - i) + _energy_at(i_next) * (i - i_last)) / (
                i_next - i_last
            )

        elif i_last is not None:
            # beyond the right hand edge of the known data.
            if mode == LINEAR_AT_LARGE_X:
                energy[i] = _energy_at(i_last) * (1.0 + (i - i_last) / number_of_bins)
            elif mode == QUADRATIC_AT_ENDS:
                midpoint = 0.5 * (next_defined[0] + i_last)
                width = i_last - midpoint
                if width <= 0:
                    width = 1.0
                energy[i] = _energy_at(i_last) * ((i - midpoint) / width) ** 2
            elif mode == TRUNCATE_AT_LARGE_X:
                pass
            else:
                energy[i] = _energy_at(i_last)

        elif i_next is not None:
            # beyond the left hand edge of the known data.
            if mode == QUADRATIC_AT_ENDS:
                midpoint = 0.5 * (last_defined[-1] + i_next)
                width = midpoint - i_next
                if width <= 0:
                    width = 1.0
                energy[i] = _energy_at(i_next) * ((midpoint - i) / width) ** 2
            else:
                energy[i] = _energy_at(i_next)

    if is_periodic:
        energy[number_of_bins] = energy[0]

    return TabulatedPotential(x=np.array(potential.x, dtype=float), energy=energy)
