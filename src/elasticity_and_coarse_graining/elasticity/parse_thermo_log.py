import os

import numpy as np
import pandas as pd
import yaml

from elasticity_and_coarse_graining.elasticity.cell_utils import \
    get_lattice_matrix_from_lammps_box
from elasticity_and_coarse_graining.namespace import (CELL_VECTOR_COMPONENTS,
                                                      STRESS_PREFIX,
                                                      STRESS_TENSOR_COMPONENTS)

# LAMMPS reports the pressure in bars (metal units). The stress is minus the pressure, in GPa.
BAR_TO_GPA_STRESS_FACTOR = -1.0e-4

_BOX_KEYWORDS = ["Lx", "Ly", "Lz", "Xy", "Xz", "Yz"]
_PRESSURE_KEYWORDS = ["Pxx", "Pyy", "Pzz", "Pxy", "Pxz", "Pyz"]


def parse_stress_strain_thermo_log(
    thermo_log: str, pressure_to_stress_factor: float = BAR_TO_GPA_STRESS_FACTOR
) -> pd.DataFrame:
    """Parse a LAMMPS thermo log into stress-strain frames.

    The thermo log is in yaml format, with the keys 'keywords' and 'data'. The keywords must include the
    box description (Lx, Ly, Lz, Xy, Xz, Yz) and the pressure tensor (Pxx, Pyy, Pzz, Pxy, Pxz, Pyz).

    Args:
        thermo_log: path to the LAMMPS thermo log in yaml format.
        pressure_to_stress_factor: multiplicative factor from the pressure tensor in the log to the stress
            tensor. Defaults to bars -> GPa, with the sign change from pressure to stress.

    Returns:
        frames: one row per frame, with columns AX, ..., CZ, StressXX, ..., StressYZ.
    """
    if not os.path.exists(thermo_log):
        raise ValueError(
            f"{thermo_log} does not exist. Please provide a valid LAMMPS thermo log file as yaml."
        )

    with open(thermo_log, "r") as f:
        log_yaml = yaml.safe_load(f)

    keywords = log_yaml["keywords"]
    for keyword in _BOX_KEYWORDS + _PRESSURE_KEYWORDS:
        assert keyword in keywords, f"The keyword '{keyword}' is missing from the thermo log {thermo_log}."

    data = pd.DataFrame(np.array(log_yaml["data"], dtype=float), columns=keywords)

    cell_components = get_lattice_matrix_from_lammps_box(
        *[data[keyword].to_numpy() for keyword in _BOX_KEYWORDS]
    )
    frames = pd.DataFrame(cell_components, columns=CELL_VECTOR_COMPONENTS)

    for component, keyword in zip(STRESS_TENSOR_COMPONENTS, _PRESSURE_KEYWORDS):
        frames[STRESS_PREFIX + component] = pressure_to_stress_factor * data[keyword].to_numpy()

    return frames
