import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
import torch

from elasticity_and_coarse_graining.elasticity.block_averaging import (
    DEFAULT_NUMBER_OF_BLOCKS, AveragedProperty, compute_block_averages)
from elasticity_and_coarse_graining.elasticity.cell_utils import (
    get_cell_matrix_from_averages, get_components_from_cell_matrix)
from elasticity_and_coarse_graining.elasticity.strain import (
    compute_modulus, compute_strain_tensor, engineering_strain)
from elasticity_and_coarse_graining.elasticity.trajectory_sampling import \
    estimate_sampling_interval
from elasticity_and_coarse_graining.namespace import (
    CELL_VECTOR_COMPONENTS, CYCLE, EQUILIBRATION_CYCLE_COLUMNS, ERROR_STRESS,
    FRAME_PROPERTY_NAMES, INPUT_STRESS, MEAN_STRESS, MODULUS, STRAIN,
    STRESS_PREFIX, STRESS_STRAIN_COLUMNS, STRESS_TENSOR_COMPONENTS)

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class StressStrainParameters:
    """Parameters of a stress-strain curve calculation.

    A single stress component is applied (all others are zero). A normal component (XX, YY, ZZ) yields a
    Young's modulus, a shear component (XY, XZ, YZ) a shear modulus.
    """

    stress_component: str = "XX"
    stresses: List[float] = field(default_factory=lambda: [1.0, 2.0, 3.0])  # in GPa

    number_of_zero_stress_equilibration_cycles: int = 5
    number_of_steps_per_zero_stress_equilibration_cycle: int = 100

    number_of_equilibration_steps_per_stress_value: int = 500
    number_of_production_steps_per_stress_value: int = 500

    target_trajectory_frequency: int = 1000
    number_of_blocks: int = DEFAULT_NUMBER_OF_BLOCKS

    def __post_init__(self):
        """Post init."""
        assert (
            self.stress_component in STRESS_TENSOR_COMPONENTS
        ), f"Unknown stress component {self.stress_component}. Possible choices are {STRESS_TENSOR_COMPONENTS}"
        assert self.number_of_blocks >= 2, "At least two blocks are needed to estimate errors."
        assert (
            self.number_of_production_steps_per_stress_value > 0
        ), "The number of production steps should be positive."
        assert (
            self.number_of_equilibration_steps_per_stress_value >= 0
        ), "The number of equilibration steps should be non-negative."
        assert self.target_trajectory_frequency > 0, "The target trajectory frequency should be positive."
        assert (
            self.number_of_zero_stress_equilibration_cycles >= 0
        ), "The number of zero stress equilibration cycles should be non-negative."
        assert (
            self.number_of_steps_per_zero_stress_equilibration_cycle > 0
        ), "The number of steps per zero stress equilibration cycle should be positive."

    @property
    def trajectory_frequency(self) -> int:
        """Number of time steps between recorded frames for the runs at a given stress."""
        return estimate_sampling_interval(
            self.target_trajectory_frequency, self.number_of_production_steps_per_stress_value
        )

    @property
    def number_of_equilibration_frames(self) -> float:
        """Number of frames at the beginning of each run that are discarded by the analysis."""
        return self.number_of_equilibration_steps_per_stress_value / self.trajectory_frequency

    @property
    def equilibration_cycle_trajectory_frequency(self) -> int:
        """Number of time steps between recorded frames for the zero stress equilibration cycles."""
        return estimate_sampling_interval(
            self.target_trajectory_frequency, self.number_of_steps_per_zero_stress_equilibration_cycle
        )


def average_equilibration_cycle(
    frames: pd.DataFrame, number_of_blocks: int = DEFAULT_NUMBER_OF_BLOCKS
) -> torch.Tensor:
    """Average equilibration cycle.

    The zero stress equilibration is done in cycles; each new cycle starts from the average cell of the
    previous one, which damps the oscillations of the cell.

    Args:
        frames: frames of one equilibration cycle.
        number_of_blocks: number of blocks for the averaging.

    Returns:
        cell_matrix: the averaged cell matrix, with lattice vectors as rows. Dimension [3, 3].
    """
    averages = compute_block_averages(frames, number_of_blocks, number_of_equilibration_frames=0)
    return get_cell_matrix_from_averages(averages)


def analyze_equilibration_cycles(
    parameters: StressStrainParameters, list_cycle_frames: List[pd.DataFrame]
) -> pd.DataFrame:
    """Analyze the zero stress equilibration cycles.

    Args:
        parameters: stress-strain parameters.
        list_cycle_frames: the frames of each equilibration cycle, in order.

    Returns:
        equilibration_cycle_table: one row per cycle, with the averaged cell components that start the next cycle.
    """
    assert len(list_cycle_frames) == parameters.number_of_zero_stress_equilibration_cycles, (
        f"Expected {parameters.number_of_zero_stress_equilibration_cycles} equilibration cycles, "
        f"got {len(list_cycle_frames)}."
    )
    expected_number_of_frames = (
        parameters.number_of_steps_per_zero_stress_equilibration_cycle
        // parameters.equilibration_cycle_trajectory_frequency
    )

    rows = []
    for cycle, frames in enumerate(list_cycle_frames, start=1):
        if len(frames) < expected_number_of_frames:
            logger.warning(
                f"Equilibration cycle {cycle} has {len(frames)} frames, {expected_number_of_frames} were expected."
            )
        cell_matrix = average_equilibration_cycle(frames[FRAME_PROPERTY_NAMES], parameters.number_of_blocks)
        components = get_components_from_cell_matrix(cell_matrix).tolist()
        logger.info(f"  - equilibration cycle {cycle}: averaged cell {components}")

        row = {CYCLE: cycle}
        row.update(dict(zip(CELL_VECTOR_COMPONENTS, components)))
        rows.append(row)

    return pd.DataFrame(rows, columns=EQUILIBRATION_CYCLE_COLUMNS)


def get_stress_strain_row(
    stress_component: str,
    applied_stress: float,
    averages: Dict[str, AveragedProperty],
    strain_tensor: torch.Tensor,
) -> Dict[str, float]:
    """Get one row of the stress-strain table.

    Args:
        stress_component: the component along which the stress is applied.
        applied_stress: the applied stress, in GPa.
        averages: block averages of the frames' properties.
        strain_tensor: the averaged strain with respect to the reference cell.

    Returns:
        row: dictionary with the input stress, measured stress, its error, the strain and the modulus.
    """
    stress_average = averages[STRESS_PREFIX + stress_component]
    strain = engineering_strain(strain_tensor, stress_component)
    return {
        INPUT_STRESS: float(applied_stress),
        MEAN_STRESS: stress_average.mean,
        ERROR_STRESS: stress_average.standard_error,
        STRAIN: strain,
        MODULUS: compute_modulus(stress_average.mean, strain),
    }


def analyze_stress_strain_curve(
    parameters: StressStrainParameters,
    zero_stress_frames: pd.DataFrame,
    list_stressed_frames: List[Tuple[float, pd.DataFrame]],
) -> pd.DataFrame:
    """Analyze stress-strain curve.

    The reference cell is the block averaged cell of the run at zero stress. Each run at a finite stress is
    block averaged after discarding its equilibration frames, and its averaged cell is compared with the
    reference cell to get the strain.

    Args:
        parameters: stress-strain parameters.
        zero_stress_frames: frames of the run at zero stress, including its equilibration period.
        list_stressed_frames: list of (applied stress, frames) for each finite stress.

    Returns:
        stress_strain_table: one row per stress value, the first row being the zero stress run.
    """
    number_of_equilibration_frames = parameters.number_of_equilibration_frames
    logger.info(
        f"Analyzing stress-strain curve for component {parameters.stress_component}, "
        f"discarding {number_of_equilibration_frames} equilibration frames per run."
    )

    reference_averages = compute_block_averages(
        zero_stress_frames[FRAME_PROPERTY_NAMES],
        parameters.number_of_blocks,
        number_of_equilibration_frames,
    )
    reference_cell = get_cell_matrix_from_averages(reference_averages)
    reference_strain = compute_strain_tensor(reference_cell, reference_cell)

    rows = [
        get_stress_strain_row(parameters.stress_component, 0.0, reference_averages, reference_strain)
    ]

    for applied_stress, frames in list_stressed_frames:
        logger.info(f"  - analyzing run at applied stress {applied_stress} GPa")
        averages = compute_block_averages(
            frames[FRAME_PROPERTY_NAMES], parameters.number_of_blocks, number_of_equilibration_frames
        )
        average_cell = get_cell_matrix_from_averages(averages)
        strain_tensor = compute_strain_tensor(reference_cell, average_cell)
        rows.append(
            get_stress_strain_row(parameters.stress_component, applied_stress, averages, strain_tensor)
        )

    stress_strain_table = pd.DataFrame(rows, columns=STRESS_STRAIN_COLUMNS)
    finite_moduli = stress_strain_table[MODULUS].to_numpy()[1:]
    if len(finite_moduli) > 0 and np.all(np.isfinite(finite_moduli)):
        logger.info(f"Mean modulus over the finite stresses: {np.mean(finite_moduli):.3f} GPa")
    return stress_strain_table
