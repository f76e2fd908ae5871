import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from elasticity_and_coarse_graining.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

DEFAULT_NUMBER_OF_BLOCKS = 4


@dataclass(frozen=True)
class AveragedProperty:
    """Mean and standard error of a property over a trajectory."""

    mean: float
    standard_error: float


def get_block_boundaries(
    number_of_frames: int, number_of_blocks: int, number_of_equilibration_frames: int = 0
) -> List[Tuple[int, int]]:
    """Get block boundaries.

    The production frames are split in contiguous blocks of nearly equal size. Block b covers the
    frames [start_b, start_{b+1}), with

        start_b = floor(b * number_of_production_frames / number_of_blocks) + number_of_equilibration_frames.

    Args:
        number_of_frames: total number of frames in the trajectory, including equilibration.
        number_of_blocks: number of blocks.
        number_of_equilibration_frames: number of leading frames to discard.

    Returns:
        block_boundaries: list of (start, end) frame indices, end excluded.
    """
    number_of_production_frames = number_of_frames - number_of_equilibration_frames
    if number_of_production_frames <= 0:
        raise InsufficientDataError(
            f"No production frames in trajectory: {number_of_frames} frames in total, "
            f"{number_of_equilibration_frames} equilibration frames."
        )
    if number_of_production_frames < number_of_blocks:
        raise InsufficientDataError(
            f"Only {number_of_production_frames} production frames for {number_of_blocks} blocks: "
            f"some blocks would be empty."
        )

    starts = [
        (block * number_of_production_frames) // number_of_blocks + number_of_equilibration_frames
        for block in range(number_of_blocks + 1)
    ]
    return list(zip(starts[:-1], starts[1:]))


def compute_block_averages(
    frames: pd.DataFrame,
    number_of_blocks: int = DEFAULT_NUMBER_OF_BLOCKS,
    number_of_equilibration_frames: float = 0,
    property_names: Optional[List[str]] = None,
) -> Dict[str, AveragedProperty]:
    """Compute block averages.

    The first number_of_equilibration_frames are discarded; the rest of the trajectory is divided in
    blocks. Each property is averaged within each block, and the spread of the block means is used to
    estimate the standard error,

        standard_error = sqrt( variance * N / (N - 1) ),

    where variance is the population variance of the N block means.

    Args:
        frames: one row per trajectory frame, one column per property.
        number_of_blocks: number of blocks N. Must be at least 2.
        number_of_equilibration_frames: number of leading frames to discard. Non-integer values are floored.
        property_names: the columns to average. Defaults to all columns.

    Returns:
        averages: dictionary of property name to its mean and standard error.
    """
    if number_of_blocks < 2:
        raise ValueError(
            f"At least two blocks are needed to estimate a standard error. Got {number_of_blocks}."
        )
    if property_names is None:
        property_names = list(frames.columns)

    number_of_equilibration_frames = int(np.floor(number_of_equilibration_frames))
    block_boundaries = get_block_boundaries(
        len(frames), number_of_blocks, number_of_equilibration_frames
    )

    values = frames[property_names]
    block_means = pd.DataFrame(
        [values.iloc[start:end].mean(axis=0) for start, end in block_boundaries]
    )

    means = block_means.mean(axis=0)
    # Population variance of the block means, ie, normalized by N.
    variances = block_means.var(axis=0, ddof=0).clip(lower=0.0)
    standard_errors = np.sqrt(variances * number_of_blocks / (number_of_blocks - 1))

    averages = dict()
    for name in property_names:
        averages[name] = AveragedProperty(
            mean=float(means[name]), standard_error=float(standard_errors[name])
        )
    return averages
