from dataclasses import dataclass
from typing import Any, AnyStr, Dict, List, Sequence, Tuple

import numpy as np

from elasticity_and_coarse_graining.coarse_graining.distributions import (
    bond_angle_jacobian, bond_length_jacobian, compute_distribution,
    compute_radial_distribution_function, unit_jacobian)
from elasticity_and_coarse_graining.coarse_graining.gap_filling import \
    fill_gaps
from elasticity_and_coarse_graining.coarse_graining.potentials import \
    truncate_after_nth_sign_change
from elasticity_and_coarse_graining.coarse_graining.type_sequences import (
    TYPE_SEPARATOR, get_angle_type_sequence, get_bond_type_sequence,
    get_forcefield_type, get_non_bond_type_sequences,
    get_torsion_type_sequence)
from elasticity_and_coarse_graining.namespace import (ANGLE, BOND, NON_BOND,
                                                      PERIODIC,
                                                      QUADRATIC_AT_ENDS,
                                                      TORSION,
                                                      TRUNCATE_AT_LARGE_X,
                                                      Distribution,
                                                      TabulatedPotential)


@dataclass(kw_only=True)
class BaseInteractionParameters:
    """Parameters describing how one kind of interaction is tabulated and fitted."""

    kind: str
    bin_width: float
    gap_filling_mode: str
    x_label: str

    def __post_init__(self):
        """Post init."""
        assert self.bin_width > 0, f"The bin width should be positive. Got {self.bin_width}"

    @property
    def grid_start(self) -> float:
        """First x value of the tabulated potential."""
        raise NotImplementedError("This method must be implemented in a child class.")

    @property
    def number_of_grid_points(self) -> int:
        """Number of x values of the tabulated potential."""
        raise NotImplementedError("This method must be implemented in a child class.")

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """Volume element correction of the distribution."""
        raise NotImplementedError("This method must be implemented in a child class.")

    def get_grid(self) -> np.ndarray:
        """The x values on which the potentials are tabulated."""
        return self.grid_start + self.bin_width * np.arange(self.number_of_grid_points)

    def get_distribution_domain(self) -> Tuple[float, float]:
        """Domain of the histogram whose bin centres fall on the grid."""
        grid = self.get_grid()
        return grid[0] - 0.5 * self.bin_width, grid[-1] + 0.5 * self.bin_width

    def get_distribution(self, samples: Sequence[float]) -> Distribution:
        """Histogram of the samples, with the bin centres on the grid."""
        domain_start, domain_end = self.get_distribution_domain()
        return compute_distribution(samples, self.bin_width, domain_start, domain_end)

    def finalize_potential(self, potential: TabulatedPotential) -> TabulatedPotential:
        """Make an estimated potential usable in a forcefield."""
        return fill_gaps(potential, self.gap_filling_mode)


@dataclass(kw_only=True)
class BondInteractionParameters(BaseInteractionParameters):
    """Bond stretch, tabulated in Angstrom."""

    kind: str = BOND
    bin_width: float = 0.01
    gap_filling_mode: str = QUADRATIC_AT_ENDS
    x_label: str = "r (A)"
    maximum_length: float = 20.0

    @property
    def grid_start(self) -> float:
        """Bonds are tabulated from zero."""
        return 0.0

    @property
    def number_of_grid_points(self) -> int:
        """Up to the maximum length."""
        return int(round(self.maximum_length / self.bin_width))

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """r^2."""
        return bond_length_jacobian(x)


@dataclass(kw_only=True)
class AngleInteractionParameters(BaseInteractionParameters):
    """Angle bend, tabulated in degrees."""

    kind: str = ANGLE
    bin_width: float = 0.5
    gap_filling_mode: str = QUADRATIC_AT_ENDS
    x_label: str = "angle (deg)"

    @property
    def grid_start(self) -> float:
        """Angles are tabulated from zero."""
        return 0.0

    @property
    def number_of_grid_points(self) -> int:
        """Up to 180 degrees."""
        return int(round(180.0 / self.bin_width))

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """sin(theta)."""
        return bond_angle_jacobian(x)

    def get_distribution(self, samples: Sequence[float]) -> Distribution:
        """Histogram of the angles. The last bin extends up to 180 degrees."""
        _, domain_end = self.get_distribution_domain()
        samples = np.asarray(samples, dtype=float)
        straight_angles = (samples >= domain_end) & (samples <= 180.0)
        return super().get_distribution(np.where(straight_angles, self.get_grid()[-1], samples))


@dataclass(kw_only=True)
class TorsionInteractionParameters(BaseInteractionParameters):
    """Torsion, tabulated in degrees over a full period. The last point is the image of the first."""

    kind: str = TORSION
    bin_width: float = 5.0
    gap_filling_mode: str = PERIODIC
    x_label: str = "angle (deg)"

    @property
    def grid_start(self) -> float:
        """Torsions are tabulated from -180 degrees."""
        return -180.0

    @property
    def number_of_grid_points(self) -> int:
        """Up to and including 180 degrees."""
        return 1 + int(round(360.0 / self.bin_width))

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """No correction."""
        return unit_jacobian(x)

    def get_distribution(self, samples: Sequence[float]) -> Distribution:
        """Histogram of the torsions over one period.

        The samples are wrapped in [-180 - w / 2, 180 - w / 2), w being the bin width, so that every
        torsion is counted once. The last grid point is the image of the first one and gets its probability.
        """
        grid = self.get_grid()
        period = grid[-1] - grid[0]
        domain_start = grid[0] - 0.5 * self.bin_width
        wrapped_samples = domain_start + np.mod(np.asarray(samples, dtype=float) - domain_start, period)

        distribution = compute_distribution(
            wrapped_samples, self.bin_width, domain_start, domain_start + period
        )
        probability = np.append(distribution.probability, distribution.probability[0])
        return Distribution(x=grid, probability=probability)


@dataclass(kw_only=True)
class NonBondInteractionParameters(BaseInteractionParameters):
    """Van der Waals interaction, tabulated in Angstrom from the radial distribution function."""

    kind: str = NON_BOND
    bin_width: float = 0.1
    gap_filling_mode: str = TRUNCATE_AT_LARGE_X
    x_label: str = "r (A)"
    cutoff: float = 15.0
    # The potential is truncated after its n-th zero to avoid long range oscillations.
    # For short range repulsion and one attractive well, set to 2.
    num_zeroes_until_cutoff: int = 4

    def __post_init__(self):
        """Post init."""
        super().__post_init__()
        assert self.cutoff > self.bin_width, "The cutoff should be larger than the bin width."
        assert self.num_zeroes_until_cutoff >= 0, "The number of zeroes should be non-negative."

    @property
    def grid_start(self) -> float:
        """Radial distributions are tabulated at the bin centres."""
        return 0.5 * self.bin_width

    @property
    def number_of_grid_points(self) -> int:
        """Up to the cutoff."""
        return int(round(self.cutoff / self.bin_width))

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """g(r) is already normalized by the shell volume."""
        return unit_jacobian(x)

    def get_radial_distribution_function(
        self,
        distances: Sequence[float],
        number_of_frames: int,
        number_of_reference_particles: int,
        number_density: float,
    ) -> Distribution:
        """g(r) of the pair distances, with the bin centres on the grid."""
        return compute_radial_distribution_function(
            distances,
            self.bin_width,
            self.cutoff,
            number_of_frames,
            number_of_reference_particles,
            number_density,
        )

    def finalize_potential(self, potential: TabulatedPotential) -> TabulatedPotential:
        """Fill the gaps, then truncate the long range oscillations."""
        filled_potential = super().finalize_potential(potential)
        return truncate_after_nth_sign_change(filled_potential, self.num_zeroes_until_cutoff)


INTERACTION_PARAMETERS_BY_KIND = {
    BOND: BondInteractionParameters,
    ANGLE: AngleInteractionParameters,
    TORSION: TorsionInteractionParameters,
    NON_BOND: NonBondInteractionParameters,
}


def create_interaction_parameters(
    interaction_dictionary: Dict[AnyStr, Any],
) -> BaseInteractionParameters:
    """Create interaction parameters.

    Args:
        interaction_dictionary : parsed configuration for one kind of interaction. It must contain the 'kind'.

    Returns:
        interaction_parameters: a configuration object for this kind of interaction.
    """
    kind = interaction_dictionary["kind"]

    assert (
        kind in INTERACTION_PARAMETERS_BY_KIND.keys()
    ), f"Interaction kind {kind} is not implemented. Possible choices are {INTERACTION_PARAMETERS_BY_KIND.keys()}"

    return INTERACTION_PARAMETERS_BY_KIND[kind](**interaction_dictionary)


def get_interaction_name(kind: str, type_sequence: str) -> str:
    """Name of an interaction, for example 'bond A,B'."""
    return f"{kind} {type_sequence}"


def parse_interaction_name(name: str) -> Tuple[str, str]:
    """Split an interaction name into its kind and its type sequence."""
    kind, _, type_sequence = name.partition(" ")
    assert (
        kind in INTERACTION_PARAMETERS_BY_KIND.keys() and len(type_sequence) > 0
    ), f"'{name}' is not a valid interaction name. It should be '<kind> <type sequence>'."
    return kind, type_sequence


_NUMBER_OF_TYPES_BY_KIND = {BOND: 2, ANGLE: 3, TORSION: 4, NON_BOND: 2}


def get_canonical_interaction_name(name: str) -> str:
    """Get canonical interaction name.

    Equivalent interactions, for example 'bond B,A' and 'bond A,B', get the same name.
    """
    kind, type_sequence = parse_interaction_name(name)
    types = type_sequence.split(TYPE_SEPARATOR)
    assert (
        len(types) == _NUMBER_OF_TYPES_BY_KIND[kind]
    ), f"A {kind} interaction involves {_NUMBER_OF_TYPES_BY_KIND[kind]} types. Got '{type_sequence}'."

    if kind == ANGLE:
        canonical_sequence = get_angle_type_sequence(*types)
    elif kind == TORSION:
        canonical_sequence = get_torsion_type_sequence(*types)
    else:
        canonical_sequence = get_bond_type_sequence(*types)
    return get_interaction_name(kind, canonical_sequence)


def is_cross_term(name: str) -> bool:
    """Whether a non-bond interaction is between distinct types."""
    kind, type_sequence = parse_interaction_name(name)
    types = type_sequence.split(TYPE_SEPARATOR)
    return kind == NON_BOND and len(set(types)) > 1


def get_non_bond_interaction_names(bead_types: Sequence[Tuple[str, str]], use_cross_terms: bool) -> List[str]:
    """Get the non-bond interaction names of a structure.

    Args:
        bead_types: the (forcefield type, bead type name) of every bead. An empty forcefield type is derived
            from the bead type name.
        use_cross_terms: whether the interactions between distinct types are fitted.

    Returns:
        names: the canonical non-bond interaction names, self terms first.
    """
    forcefield_types = [
        get_forcefield_type(forcefield_type, bead_type_name) for forcefield_type, bead_type_name in bead_types
    ]
    return [
        get_canonical_interaction_name(get_interaction_name(NON_BOND, type_sequence))
        for type_sequence in get_non_bond_type_sequences(forcefield_types, use_cross_terms)
    ]
