import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AnyStr, Dict, List, Optional, Sequence, Tuple

from elasticity_and_coarse_graining.coarse_graining.distributions import \
    get_maximum_probability
from elasticity_and_coarse_graining.coarse_graining.fitting_table import (
    FITTING_TABLE_DIRECTORY_NAME, FittingTable, get_column_headings)
from elasticity_and_coarse_graining.coarse_graining.interactions import (
    BaseInteractionParameters, create_interaction_parameters,
    get_canonical_interaction_name, get_non_bond_interaction_names,
    is_cross_term, parse_interaction_name)
from elasticity_and_coarse_graining.coarse_graining.measurements import (
    InteractionMeasurement, write_potentials)
from elasticity_and_coarse_graining.coarse_graining.potentials import (
    compute_pmf, compute_thermal_energy, relax_potential)
from elasticity_and_coarse_graining.coarse_graining.trial_simulation import \
    BaseTrialSimulation
from elasticity_and_coarse_graining.exceptions import EmptyDistributionError
from elasticity_and_coarse_graining.namespace import (NON_BOND,
                                                      TabulatedPotential)

logger = logging.getLogger(__name__)

# A trial run whose temperature deviates more than this from the target is rejected, in Kelvin.
TEMPERATURE_TOLERANCE = 5.0

NO_COMBINATION_RULE = "None"


@dataclass(kw_only=True)
class BoltzmannInversionParameters:
    """Parameters of the iterative Boltzmann inversion."""

    temperature: float = 298.0  # temperature of the reference trajectory, in Kelvin
    distribution_cutoff: float = 0.005  # ignore points less than this fraction of maximum probability
    number_of_iterations: int = 10
    # new potential = old potential + (relaxation factor) * (reference pmf - last trial pmf)
    relaxation_factor: float = 1.0
    start_iteration: int = 1  # Normally 1. Can be used to restart from a later iteration.
    # If "None", the cross terms between distinct types are also fitted.
    van_der_waals_combination_rule: str = NO_COMBINATION_RULE
    interactions: Dict[str, BaseInteractionParameters] = field(default_factory=dict)

    def __post_init__(self):
        """Post init."""
        assert self.temperature > 0.0, f"The temperature should be positive. Got {self.temperature}"
        assert 0.0 <= self.distribution_cutoff < 1.0, "The distribution cutoff should be in [0, 1)."
        assert self.relaxation_factor > 0.0, "The relaxation factor should be positive."
        assert self.start_iteration >= 1, "The start iteration should be at least 1."
        assert (
            self.number_of_iterations >= self.start_iteration - 1
        ), "The number of iterations should not be smaller than the start iteration."
        for kind, interaction_parameters in self.interactions.items():
            assert kind == interaction_parameters.kind, f"Inconsistent interaction kind {kind}."

    @property
    def use_cross_terms(self) -> bool:
        """Whether the non-bond interactions between distinct types are fitted."""
        return self.van_der_waals_combination_rule == NO_COMBINATION_RULE


def create_boltzmann_inversion_parameters(
    boltzmann_inversion_dictionary: Dict[AnyStr, Any]
) -> BoltzmannInversionParameters:
    """Create Boltzmann inversion parameters.

    The dictionary has the structure

        temperature: ...
        (other Boltzmann inversion parameters)
        interactions:
            - kind: bond
              (bond parameters)
            - kind: non-bond
              (non-bond parameters)

    Only the listed kinds of interactions are fitted.

    Args:
        boltzmann_inversion_dictionary: parsed configuration.

    Returns:
        boltzmann_inversion_parameters: the configuration object.
    """
    # Let's make sure we don't modify the input, which would lead to undesirable side effects!
    parameters_dictionary = dict(boltzmann_inversion_dictionary)
    list_interaction_dictionaries = parameters_dictionary.pop("interactions", [])

    interactions = dict()
    for interaction_dictionary in list_interaction_dictionaries:
        interaction_parameters = create_interaction_parameters(interaction_dictionary)
        assert (
            interaction_parameters.kind not in interactions
        ), f"The interaction kind {interaction_parameters.kind} is configured more than once."
        interactions[interaction_parameters.kind] = interaction_parameters

    return BoltzmannInversionParameters(interactions=interactions, **parameters_dictionary)


class BoltzmannInversion:
    """Iterative Boltzmann inversion.

    Round 0 measures the target distributions on the reference trajectory; the first trial potentials are the
    target potentials of mean force. Each following round runs dynamics with the current potentials, measures
    the distributions again and corrects the potentials by the difference between the target and trial pmf.
    """

    def __init__(
        self, parameters: BoltzmannInversionParameters, fitting_table: Optional[FittingTable] = None
    ):
        """Init method.

        Args:
            parameters: Boltzmann inversion parameters.
            fitting_table: the table holding the results of the previous rounds, if any.
        """
        self.parameters = parameters
        self.fitting_table = FittingTable() if fitting_table is None else fitting_table
        self.kT = compute_thermal_energy(parameters.temperature)

    def _get_interaction_parameters(self, name: str) -> BaseInteractionParameters:
        kind, _ = parse_interaction_name(name)
        return self.parameters.interactions[kind]

    def _is_fitted(self, name: str) -> bool:
        kind, _ = parse_interaction_name(name)
        if kind not in self.parameters.interactions:
            return False
        if is_cross_term(name) and not self.parameters.use_cross_terms:
            return False
        return True

    def find_missing_non_bond_measurements(
        self, measurements: Dict[str, InteractionMeasurement], bead_types: Sequence[Tuple[str, str]]
    ) -> List[str]:
        """Find the non-bond interactions of a structure that were not measured.

        Args:
            measurements: the measurement of each interaction.
            bead_types: the (forcefield type, bead type name) of every bead of the structure.

        Returns:
            missing_names: the fitted non-bond interactions between the bead types that have no measurement.
        """
        if NON_BOND not in self.parameters.interactions:
            return []

        measured_names = set(get_canonical_interaction_name(name) for name in measurements.keys())
        expected_names = get_non_bond_interaction_names(bead_types, self.parameters.use_cross_terms)

        missing_names = [name for name in expected_names if name not in measured_names]
        for name in missing_names:
            logger.warning(f"There is no measurement for '{name}': this interaction will not be fitted.")
        return missing_names

    def analyze(
        self,
        iteration: int,
        measurements: Dict[str, InteractionMeasurement],
        trial_potentials: Optional[Dict[str, TabulatedPotential]] = None,
    ):
        """Analyze the measurements of one round and add them to the fitting table.

        Args:
            iteration: the fitting round. Round 0 is the reference trajectory.
            measurements: the measurement of each interaction.
            trial_potentials: the potentials used in the trial run, if any.
        """
        potential_heading, probability_heading, pmf_heading = get_column_headings(iteration)
        logger.info(f"Analyzing round {iteration}")

        for name, measurement in measurements.items():
            canonical_name = get_canonical_interaction_name(name)
            if not self._is_fitted(canonical_name):
                logger.info(f"  - skipping '{name}': this interaction is not fitted.")
                continue

            interaction_parameters = self._get_interaction_parameters(canonical_name)
            self.fitting_table.get_or_create_sheet(canonical_name, interaction_parameters)

            if trial_potentials is not None and canonical_name in trial_potentials:
                potential = trial_potentials[canonical_name]
                self.fitting_table.set_column(canonical_name, potential_heading, potential.x, potential.energy)

            distribution = measurement.get_distribution(interaction_parameters)
            pmf = compute_pmf(distribution, self.kT, interaction_parameters.jacobian)

            self.fitting_table.set_column(
                canonical_name, probability_heading, distribution.x, distribution.probability
            )
            self.fitting_table.set_column(canonical_name, pmf_heading, pmf.x, pmf.energy)
            logger.info(f"  - analyzed '{canonical_name}'")

    def estimate_potential(self, name: str, iteration: int) -> TabulatedPotential:
        """Estimate the potential of one interaction for a fitting round.

        The potential for round n is computed from the results of round n - 1.

        Args:
            name: the interaction name.
            iteration: the fitting round, at least 1.

        Returns:
            potential: the tabulated potential, with gaps filled, ready to be used in a forcefield.
        """
        assert iteration >= 1, "Potentials can only be estimated from round 1 onward."
        potential_heading, probability_heading, pmf_heading = get_column_headings(iteration - 1)
        _, target_probability_heading, target_pmf_heading = get_column_headings(0)

        grid = self.fitting_table.get_grid(name)
        target_probability = self.fitting_table.get_column(name, target_probability_heading)
        target_pmf = self.fitting_table.get_column(name, target_pmf_heading)
        observed_probability = self.fitting_table.get_column(name, probability_heading)
        assert (
            target_probability is not None and target_pmf is not None
        ), f"The reference trajectory has not been analyzed for interaction '{name}'."
        assert (
            observed_probability is not None
        ), f"Round {iteration - 1} has not been analyzed for interaction '{name}'."

        try:
            maximum_probability = get_maximum_probability(observed_probability)
        except EmptyDistributionError as e:
            raise EmptyDistributionError(
                f"Cannot estimate the potential of '{name}' for round {iteration}: {e}"
            ) from e

        previous_energy = self.fitting_table.get_column(name, potential_heading)
        previous_potential = None if previous_energy is None else TabulatedPotential(grid, previous_energy)
        trial_pmf = self.fitting_table.get_column(name, pmf_heading)

        relaxed_potential = relax_potential(
            previous_potential=previous_potential,
            target_pmf=TabulatedPotential(grid, target_pmf),
            trial_pmf=None if trial_pmf is None else TabulatedPotential(grid, trial_pmf),
            relaxation_factor=self.parameters.relaxation_factor,
            probability_cutoff=self.parameters.distribution_cutoff,
            observed_max_probability=maximum_probability,
            target_probability=target_probability,
        )
        return self._get_interaction_parameters(name).finalize_potential(relaxed_potential)

    def estimate_potentials(self, iteration: int) -> Dict[str, TabulatedPotential]:
        """Estimate the potentials of all the interactions in the fitting table for a fitting round."""
        logger.info(f"Estimating potentials for round {iteration}")
        return {
            name: self.estimate_potential(name, iteration)
            for name in self.fitting_table.interaction_names
        }

    def run(
        self,
        reference_measurements: Dict[str, InteractionMeasurement],
        trial_simulation: BaseTrialSimulation,
        output_directory: Optional[Path] = None,
    ) -> Dict[str, TabulatedPotential]:
        """Run the iterative fit.

        Args:
            reference_measurements: measurements on the reference trajectory. They are only analyzed when
                starting from the first iteration; otherwise the fitting table must already hold them.
            trial_simulation: runs the dynamics with trial potentials.
            output_directory: if given, the fitting table and the potentials are written there after each round.

        Returns:
            potentials: the potentials used in the last trial run.
        """
        if self.parameters.start_iteration == 1:
            self.analyze(0, reference_measurements)
        else:
            assert (
                len(self.fitting_table.interaction_names) > 0
            ), "Restarting from a later iteration requires the fitting table of the previous rounds."

        potentials = dict()
        for iteration in range(self.parameters.start_iteration, self.parameters.number_of_iterations + 1):
            potentials = self.estimate_potentials(iteration)

            logger.info(f"Running trial dynamics for round {iteration}")
            result = trial_simulation.run(iteration, potentials)

            if abs(result.temperature - self.parameters.temperature) > TEMPERATURE_TOLERANCE:
                raise RuntimeError(
                    f"Temperature out of control in round {iteration}: got {result.temperature} K, "
                    f"expected {self.parameters.temperature} K."
                )

            self.analyze(iteration, result.measurements, potentials)

            if output_directory is not None:
                self.fitting_table.save(output_directory / FITTING_TABLE_DIRECTORY_NAME)
                write_potentials(str(output_directory / f"potentials_{iteration}.yaml"), potentials)

        return potentials
