from typing import Dict, Sequence, Tuple, Union

import einops
import numpy as np
import pandas as pd
import torch

from elasticity_and_coarse_graining.namespace import (
    CELL_VECTOR_COMPONENTS, FRAME_PROPERTY_NAMES, STRESS_PREFIX,
    STRESS_TENSOR_COMPONENTS, StressSample)


def get_cell_matrix_from_components(
    components: Union[torch.Tensor, np.ndarray, Sequence[float]]
) -> torch.Tensor:
    """Get cell matrix from components.

    The flat components are ordered as [AX, AY, AZ, BX, BY, BZ, CX, CY, CZ]. The cell matrix has the
    lattice vectors as rows,
          [-- a --]
      L = [-- b --]
          [-- c --]

    Args:
        components : flat cell components. Dimension [..., 9].

    Returns:
        cell_matrix: the lattice vectors as rows. Dimension [..., 3, 3].
    """
    components = torch.as_tensor(components, dtype=torch.float64)
    assert (
        components.shape[-1] == len(CELL_VECTOR_COMPONENTS)
    ), f"Expected {len(CELL_VECTOR_COMPONENTS)} cell components, got {components.shape[-1]}."
    return einops.rearrange(components, "... (v c) -> ... v c", v=3, c=3)


def get_components_from_cell_matrix(cell_matrix: torch.Tensor) -> torch.Tensor:
    """Get the flat cell components, [AX, AY, ..., CZ], from a cell matrix of dimension [..., 3, 3]."""
    return einops.rearrange(cell_matrix, "... v c -> ... (v c)")


def get_cell_matrix_from_averages(averages: Dict) -> torch.Tensor:
    """Get cell matrix from averages.

    Args:
        averages: a dictionary with one entry per cell component (AX, ..., CZ). The entries are either
            numbers or objects with a 'mean' attribute, such as the output of the block averaging.

    Returns:
        cell_matrix: the averaged lattice vectors as rows. Dimension [3, 3].
    """
    components = []
    for key in CELL_VECTOR_COMPONENTS:
        value = averages[key]
        components.append(getattr(value, "mean", value))
    return get_cell_matrix_from_components(components)


def get_lattice_matrix_from_lammps_box(
    lx: np.ndarray, ly: np.ndarray, lz: np.ndarray, xy: np.ndarray, xz: np.ndarray, yz: np.ndarray
) -> np.ndarray:
    """Get lattice matrix from LAMMPS box.

    LAMMPS describes a triclinic box with three lengths and three tilt factors. The lattice vectors are
        a = (lx, 0, 0)
        b = (xy, ly, 0)
        c = (xz, yz, lz)

    Args:
        lx, ly, lz: box lengths. Dimension [number of frames].
        xy, xz, yz: tilt factors. Dimension [number of frames].

    Returns:
        components: flat cell components [AX, ..., CZ]. Dimension [number of frames, 9].
    """
    zeros = np.zeros_like(np.asarray(lx, dtype=float))
    columns = [lx, zeros, zeros, xy, ly, zeros, xz, yz, lz]
    return np.stack([np.asarray(column, dtype=float) for column in columns], axis=-1)


def create_frames_dataframe(samples: Sequence[Tuple[StressSample, torch.Tensor]]) -> pd.DataFrame:
    """Create frames dataframe.

    Args:
        samples: one (stress sample, cell matrix) pair per trajectory frame. The cell matrix has the lattice
            vectors as rows.

    Returns:
        frames: one row per frame, with columns AX, ..., CZ, StressXX, ..., StressYZ.
    """
    rows = []
    for stress_sample, cell_matrix in samples:
        components = get_components_from_cell_matrix(torch.as_tensor(cell_matrix, dtype=torch.float64))
        row = dict(zip(CELL_VECTOR_COMPONENTS, components.tolist()))
        for component, value in zip(STRESS_TENSOR_COMPONENTS, stress_sample):
            row[STRESS_PREFIX + component] = float(value)
        rows.append(row)
    return pd.DataFrame(rows, columns=FRAME_PROPERTY_NAMES)
