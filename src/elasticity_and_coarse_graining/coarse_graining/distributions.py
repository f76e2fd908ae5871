import logging
from typing import Sequence

import numpy as np

from elasticity_and_coarse_graining.exceptions import EmptyDistributionError
from elasticity_and_coarse_graining.namespace import Distribution

logger = logging.getLogger(__name__)


def _get_bin_edges(bin_width: float, domain_start: float, domain_end: float) -> np.ndarray:
    """Fixed-width bin edges covering [domain_start, domain_end)."""
    assert bin_width > 0, f"The bin width should be positive. Got {bin_width}"
    assert domain_end > domain_start, "The domain end should be larger than the domain start."
    number_of_bins = int(np.round((domain_end - domain_start) / bin_width))
    assert number_of_bins > 0, "The domain should contain at least one bin."
    return domain_start + bin_width * np.arange(number_of_bins + 1)


def _histogram(values: Sequence[float], bin_edges: np.ndarray) -> np.ndarray:
    """Counts in the half-open bins [left, right), the last bin included."""
    values = np.asarray(values, dtype=float)
    in_domain = (values >= bin_edges[0]) & (values < bin_edges[-1])
    counts, _ = np.histogram(values[in_domain], bins=bin_edges)
    return counts


def compute_distribution(
    samples: Sequence[float], bin_width: float, domain_start: float, domain_end: float
) -> Distribution:
    """Compute distribution.

    Histogram the samples with fixed-width bins. The probability is normalized so that
    sum(probability) * bin_width = 1. Samples outside the domain are ignored.

    Args:
        samples: scalar measurements, such as bond lengths or angles.
        bin_width: width of a bin.
        domain_start: lower edge of the first bin.
        domain_end: upper edge of the last bin.

    Returns:
        distribution: bin centres and probability densities.
    """
    bin_edges = _get_bin_edges(bin_width, domain_start, domain_end)
    bin_centers = 0.5 * (bin_edges[1:] + bin_edges[:-1])

    counts = _histogram(samples, bin_edges)
    total_count = counts.sum()

    if total_count == 0:
        logger.warning("No sample falls within the distribution domain.")
        return Distribution(x=bin_centers, probability=np.zeros(len(bin_centers)))

    probability = counts / (total_count * bin_width)
    return Distribution(x=bin_centers, probability=probability)


def compute_radial_distribution_function(
    distances: Sequence[float],
    bin_width: float,
    cutoff: float,
    number_of_frames: int,
    number_of_reference_particles: int,
    number_density: float,
) -> Distribution:
    """Compute radial distribution function.

    The pair distances are histogrammed and each shell is normalized by its ideal gas occupancy,

        g(r) = n(r) / ( number_of_frames * number_of_reference_particles * number_density * V_shell(r) ),

    with V_shell the volume of the spherical shell between the bin edges.

    Args:
        distances: all pair distances, accumulated over the frames.
        bin_width: width of a radial bin.
        cutoff: maximum distance.
        number_of_frames: number of frames over which distances were accumulated.
        number_of_reference_particles: number of particles at the center of the shells.
        number_density: number density of the neighbouring particles.

    Returns:
        rdf: bin centres and g(r).
    """
    bin_edges = _get_bin_edges(bin_width, 0.0, cutoff)
    bin_centers = 0.5 * (bin_edges[1:] + bin_edges[:-1])

    counts = _histogram(distances, bin_edges)
    shell_volumes = 4.0 / 3.0 * np.pi * (bin_edges[1:] ** 3 - bin_edges[:-1] ** 3)
    ideal_counts = number_of_frames * number_of_reference_particles * number_density * shell_volumes

    return Distribution(x=bin_centers, probability=counts / ideal_counts)


def get_maximum_probability(probability: Sequence[float]) -> float:
    """Get the maximum probability, ignoring undefined values.

    Raises:
        EmptyDistributionError: if no probability is positive.
    """
    probability = np.asarray(probability, dtype=float)
    defined_probability = probability[np.isfinite(probability)]
    maximum_probability = defined_probability.max() if len(defined_probability) > 0 else 0.0
    if maximum_probability <= 0.0:
        raise EmptyDistributionError("Probability distribution is null.")
    return float(maximum_probability)


def bond_length_jacobian(r: np.ndarray) -> np.ndarray:
    """Volume element of a distance distribution, r^2."""
    return np.asarray(r, dtype=float) ** 2


def bond_angle_jacobian(angle_in_degrees: np.ndarray) -> np.ndarray:
    """Volume element of an angle distribution, sin(theta)."""
    return np.sin(np.deg2rad(np.asarray(angle_in_degrees, dtype=float)))


def unit_jacobian(x: np.ndarray) -> np.ndarray:
    """No correction: torsion distributions and radial distribution functions."""
    return np.ones_like(np.asarray(x, dtype=float))
