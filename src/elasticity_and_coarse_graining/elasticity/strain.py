import numpy as np
import torch

from elasticity_and_coarse_graining.exceptions import SingularMatrixError
from elasticity_and_coarse_graining.namespace import (NORMAL_COMPONENTS,
                                                      SHEAR_COMPONENTS)

_COMPONENT_INDICES = dict(XX=(0, 0), YY=(1, 1), ZZ=(2, 2), XY=(0, 1), XZ=(0, 2), YZ=(1, 2))

_SINGULAR_DETERMINANT_THRESHOLD = 1.0e-12


def compute_strain_tensor(
    reference_cell_matrix: torch.Tensor, current_cell_matrix: torch.Tensor
) -> torch.Tensor:
    """Compute the symmetric strain tensor.

    The cell matrices are given with the lattice vectors as rows (as everywhere else in the code base).
    The strain is defined in terms of the matrices h with lattice vectors as columns, h = L^T,

        epsilon = 1/2 ( h . h0^{-1} + h0^{-T} . h^T ) - I

    where h0 is the reference cell and h the current cell. Writing M = h . h0^{-1}, this is the
    symmetric part of M - I.

    Args:
        reference_cell_matrix: reference lattice vectors as rows. Dimension [..., 3, 3].
        current_cell_matrix: strained lattice vectors as rows. Dimension [..., 3, 3].

    Returns:
        strain_tensor: symmetric strain tensor. Dimension [..., 3, 3].
    """
    reference_cell_matrix = torch.as_tensor(reference_cell_matrix, dtype=torch.float64)
    current_cell_matrix = torch.as_tensor(current_cell_matrix, dtype=torch.float64)

    determinants = torch.linalg.det(reference_cell_matrix)
    if not torch.all(torch.isfinite(determinants)) or torch.any(
        determinants.abs() < _SINGULAR_DETERMINANT_THRESHOLD
    ):
        raise SingularMatrixError(
            f"The reference cell matrix is not invertible. Determinant(s): {determinants}"
        )

    h0 = reference_cell_matrix.transpose(-1, -2)
    h = current_cell_matrix.transpose(-1, -2)

    deformation = torch.matmul(h, torch.inverse(h0))
    identity = torch.eye(3, dtype=deformation.dtype).expand_as(deformation)

    displacement_gradient = deformation - identity
    strain_tensor = 0.5 * (displacement_gradient + displacement_gradient.transpose(-1, -2))
    return strain_tensor


def engineering_strain(strain_tensor: torch.Tensor, component: str) -> float:
    """Engineering strain.

    The shear components (XY, XZ, YZ) of the engineering strain are twice the tensorial values;
    the normal components (XX, YY, ZZ) are the same.

    Args:
        strain_tensor: symmetric strain tensor. Dimension [3, 3].
        component: one of XX, YY, ZZ, XY, XZ, YZ.

    Returns:
        strain: the engineering strain for this component.
    """
    if component not in _COMPONENT_INDICES:
        raise ValueError(
            f"Unknown strain component '{component}'. Possible choices are {list(_COMPONENT_INDICES.keys())}"
        )
    i, j = _COMPONENT_INDICES[component]
    tensorial_strain = float(strain_tensor[i, j])

    if component in SHEAR_COMPONENTS:
        return 2.0 * tensorial_strain

    assert component in NORMAL_COMPONENTS
    return tensorial_strain


def compute_modulus(mean_stress: float, strain: float) -> float:
    """Young's (normal component) or shear modulus; NaN when there is no strain."""
    if strain == 0.0:
        return np.nan
    return mean_stress / strain
