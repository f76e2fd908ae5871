from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

from elasticity_and_coarse_graining.coarse_graining.measurements import \
    InteractionMeasurement
from elasticity_and_coarse_graining.namespace import TabulatedPotential


@dataclass(kw_only=True)
class TrialSimulationResult:
    """Outcome of a trial dynamics run."""

    measurements: Dict[str, InteractionMeasurement]
    temperature: float  # average temperature of the run, in Kelvin


class BaseTrialSimulation(ABC):
    """Base class for the trial dynamics runs.

    A trial run samples the coarse-grained system with the current tabulated potentials and measures the
    same interactions as in the reference trajectory. The dynamics engine itself is an external program.
    """

    @abstractmethod
    def run(self, iteration: int, potentials: Dict[str, TabulatedPotential]) -> TrialSimulationResult:
        """Run trial dynamics.

        Args:
            iteration: the fitting round.
            potentials: tabulated potential for each interaction name.

        Returns:
            result: the measurements made on the trial trajectory and its temperature.
        """
        pass
