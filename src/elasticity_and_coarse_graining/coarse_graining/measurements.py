import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import yaml

from elasticity_and_coarse_graining.coarse_graining.interactions import (
    BaseInteractionParameters, NonBondInteractionParameters,
    parse_interaction_name)
from elasticity_and_coarse_graining.namespace import (
    BEAD_TYPE_NAME, BEADS, DISTANCES, ENERGY, FORCEFIELD_TYPE, NUMBER_DENSITY,
    NUMBER_OF_FRAMES, NUMBER_OF_REFERENCE_PARTICLES, PROBABILITY, SAMPLES,
    TEMPERATURE, X, Distribution, TabulatedPotential)


@dataclass(kw_only=True)
class PairDistances:
    """Pair distances accumulated over a trajectory, with what is needed to normalize them into g(r)."""

    distances: np.ndarray
    number_of_frames: int
    number_of_reference_particles: int
    number_density: float

    def __post_init__(self):
        """Post init."""
        assert self.number_of_frames > 0, "The number of frames should be positive."
        assert self.number_of_reference_particles > 0, "The number of reference particles should be positive."
        assert self.number_density > 0.0, "The number density should be positive."


@dataclass(kw_only=True)
class InteractionMeasurement:
    """What was measured for one interaction over a trajectory.

    Either the raw samples (bond lengths, angles, torsions), the pair distances of a non-bond interaction, or a
    distribution computed elsewhere, such as a radial distribution function.
    """

    name: str
    samples: Optional[np.ndarray] = None
    pair_distances: Optional[PairDistances] = None
    distribution: Optional[Distribution] = None

    def __post_init__(self):
        """Post init."""
        parse_interaction_name(self.name)
        number_of_measurements = sum(
            measurement is not None for measurement in [self.samples, self.pair_distances, self.distribution]
        )
        assert (
            number_of_measurements == 1
        ), f"Exactly one of samples, pair distances or distribution should be given for interaction '{self.name}'."

    def get_distribution(self, interaction_parameters: BaseInteractionParameters) -> Distribution:
        """The measured distribution, histogrammed on the interaction's grid if needed."""
        if self.distribution is not None:
            return self.distribution

        if self.pair_distances is not None:
            assert isinstance(
                interaction_parameters, NonBondInteractionParameters
            ), f"Pair distances are only used for non-bond interactions. Got '{self.name}'."
            return interaction_parameters.get_radial_distribution_function(
                self.pair_distances.distances,
                self.pair_distances.number_of_frames,
                self.pair_distances.number_of_reference_particles,
                self.pair_distances.number_density,
            )

        return interaction_parameters.get_distribution(self.samples)


def _read_measurements_yaml(measurements_file: str) -> Dict[str, Any]:
    if not os.path.exists(measurements_file):
        raise ValueError(
            f"{measurements_file} does not exist. Please provide a valid measurements file as yaml."
        )

    with open(measurements_file, "r") as fd:
        return yaml.safe_load(fd)


def _create_measurement(name: str, data: Dict[str, Any]) -> InteractionMeasurement:
    if SAMPLES in data:
        return InteractionMeasurement(name=name, samples=np.array(data[SAMPLES], dtype=float))

    if DISTANCES in data:
        pair_distances = PairDistances(
            distances=np.array(data[DISTANCES], dtype=float),
            number_of_frames=data[NUMBER_OF_FRAMES],
            number_of_reference_particles=data[NUMBER_OF_REFERENCE_PARTICLES],
            number_density=data[NUMBER_DENSITY],
        )
        return InteractionMeasurement(name=name, pair_distances=pair_distances)

    distribution = Distribution(
        x=np.array(data[X], dtype=float), probability=np.array(data[PROBABILITY], dtype=float)
    )
    return InteractionMeasurement(name=name, distribution=distribution)


def parse_measurements(
    measurements_file: str,
) -> Tuple[Dict[str, InteractionMeasurement], Optional[float]]:
    """Parse measurements.

    The measurements file is in yaml format, with the structure

        temperature: 298.0 (optional: the temperature of the run)
        beads: (optional: see parse_bead_types)
        interactions:
            bond A,B:
                samples: [...]
            non-bond A,A:
                distances: [...]
                number_of_frames: 10
                number_of_reference_particles: 100
                number_density: 0.01
            non-bond A,B:
                x: [...]
                probability: [...]

    Args:
        measurements_file: path to the yaml file.

    Returns:
        measurements: dictionary of interaction name to its measurement.
        temperature: the temperature of the run, None if absent.
    """
    measurements_yaml = _read_measurements_yaml(measurements_file)

    measurements = {
        name: _create_measurement(name, data) for name, data in measurements_yaml["interactions"].items()
    }
    temperature = measurements_yaml.get(TEMPERATURE, None)
    return measurements, temperature


def parse_bead_types(measurements_file: str) -> List[Tuple[str, str]]:
    """Parse the bead types of the measured structure.

    The optional 'beads' section of the measurements file lists every bead as
    {forcefield_type: ..., bead_type_name: ...}; a missing forcefield type is an empty string.

    Returns:
        bead_types: the (forcefield type, bead type name) of every bead. Empty if there is no 'beads' section.
    """
    measurements_yaml = _read_measurements_yaml(measurements_file)
    return [
        (str(bead.get(FORCEFIELD_TYPE) or ""), str(bead.get(BEAD_TYPE_NAME) or ""))
        for bead in measurements_yaml.get(BEADS, [])
    ]


def write_potentials(potentials_file: str, potentials: Dict[str, TabulatedPotential]):
    """Write tabulated potentials in yaml format, as {name: {x: [...], energy: [...]}}."""
    potentials_yaml = dict()
    for name, potential in potentials.items():
        energy = [None if not np.isfinite(e) else float(e) for e in potential.energy]
        potentials_yaml[name] = {X: [float(x) for x in potential.x], ENERGY: energy}

    with open(potentials_file, "w") as fd:
        yaml.dump(potentials_yaml, fd, sort_keys=False)


def read_potentials(potentials_file: str) -> Dict[str, TabulatedPotential]:
    """Read tabulated potentials written by write_potentials. Missing energies are NaN."""
    if not os.path.exists(potentials_file):
        raise ValueError(f"{potentials_file} does not exist. Please provide a valid potentials file as yaml.")

    with open(potentials_file, "r") as fd:
        potentials_yaml = yaml.safe_load(fd)

    potentials = dict()
    for name, data in potentials_yaml.items():
        energy = np.array([np.nan if e is None else e for e in data[ENERGY]], dtype=float)
        potentials[name] = TabulatedPotential(x=np.array(data[X], dtype=float), energy=energy)
    return potentials
