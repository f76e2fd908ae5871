"""Namespace.

This module defines string constants to represent recurring concepts that appear
throughout the code base. Confusion and errors are reduced by having one and only one string to
represent these concepts.
"""

from collections import namedtuple

# Cell matrix components. The lattice vectors are a, b, c and each has X, Y, Z cartesian components.
#
#       [ -- a -- ]   [ AX AY AZ ]
#   L = [ -- b -- ] = [ BX BY BZ ]
#       [ -- c -- ]   [ CX CY CZ ]
CELL_VECTOR_COMPONENTS = ["AX", "AY", "AZ", "BX", "BY", "BZ", "CX", "CY", "CZ"]

NORMAL_COMPONENTS = ["XX", "YY", "ZZ"]
SHEAR_COMPONENTS = ["XY", "XZ", "YZ"]
STRESS_TENSOR_COMPONENTS = NORMAL_COMPONENTS + SHEAR_COMPONENTS

STRESS_PREFIX = "Stress"
STRESS_PROPERTY_NAMES = [STRESS_PREFIX + component for component in STRESS_TENSOR_COMPONENTS]

# all the per-frame properties that are block averaged in a stress-strain analysis.
FRAME_PROPERTY_NAMES = CELL_VECTOR_COMPONENTS + STRESS_PROPERTY_NAMES

StressSample = namedtuple("StressSample", ["xx", "yy", "zz", "xy", "xz", "yz"])

# Stress-strain output table
INPUT_STRESS = "Input stress / GPa"
MEAN_STRESS = "Measured stress / GPa"
ERROR_STRESS = "Error in stress / GPa"
STRAIN = "Strain"
MODULUS = "Modulus / GPa"
STRESS_STRAIN_COLUMNS = [INPUT_STRESS, MEAN_STRESS, ERROR_STRESS, STRAIN, MODULUS]

# Zero stress equilibration cycles table
CYCLE = "Cycle"
EQUILIBRATION_CYCLE_COLUMNS = [CYCLE] + CELL_VECTOR_COMPONENTS

# Coarse-grained interaction kinds
BOND = "bond"
ANGLE = "angle"
TORSION = "torsion"
NON_BOND = "non-bond"

# Gap filling modes for tabulated potentials
LINEAR_AT_LARGE_X = "linear_at_large_x"
QUADRATIC_AT_ENDS = "quadratic_at_ends"
TRUNCATE_AT_LARGE_X = "truncate_at_large_x"
PERIODIC = "periodic"
COPY_NEAREST = "copy_nearest"

Distribution = namedtuple("Distribution", ["x", "probability"])
TabulatedPotential = namedtuple("TabulatedPotential", ["x", "energy"])

# Keys in measurement files
SAMPLES = "samples"
X = "x"
PROBABILITY = "probability"
ENERGY = "energy"
TEMPERATURE = "temperature"
DISTANCES = "distances"
NUMBER_OF_FRAMES = "number_of_frames"
NUMBER_OF_REFERENCE_PARTICLES = "number_of_reference_particles"
NUMBER_DENSITY = "number_density"
BEADS = "beads"
FORCEFIELD_TYPE = "forcefield_type"
BEAD_TYPE_NAME = "bead_type_name"
