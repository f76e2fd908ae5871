import numpy as np
import pandas as pd
import pytest
import torch
import yaml

from elasticity_and_coarse_graining.elasticity.cell_utils import \
    get_components_from_cell_matrix
from elasticity_and_coarse_graining.namespace import (CELL_VECTOR_COMPONENTS,
                                                      FRAME_PROPERTY_NAMES,
                                                      STRESS_PROPERTY_NAMES)


def pytest_addoption(parser):
    parser.addoption(
        "--quick", action="store_true", default=False, help="skip slow tests"
    )
    parser.addoption(
        "--slow", action="store_true", default=False, help="only perform slow tests"
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--quick"):
        # --quick given in cli: skip slow tests
        skip = pytest.mark.skip(reason="--quick option must be absent to run")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip)
    elif config.getoption("--slow"):
        # --slow given in cli: only do the slow tests
        skip = pytest.mark.skip(reason="--slow option must be present to run")
        for item in items:
            if "slow" not in item.keywords:
                item.add_marker(skip)


@pytest.fixture
def cell_matrix():
    # an orthogonal box with dimensions between 5 and 10, with a bit of noise to make it triclinic.
    torch.manual_seed(34534)
    orthogonal_box = torch.diag(5. + 5. * torch.rand(3, dtype=torch.float64))
    return orthogonal_box + 0.1 * torch.randn(3, 3, dtype=torch.float64)


def create_fake_frames(cell_matrix: torch.Tensor, stresses: np.ndarray) -> pd.DataFrame:
    """Create frames with a fixed cell and the given stresses.

    Args:
        cell_matrix : lattice vectors as rows. Dimension [3, 3].
        stresses : one row of six stress components per frame. Dimension [number of frames, 6].

    Returns:
        frames: one row per frame, with the cell and stress columns.
    """
    number_of_frames = len(stresses)
    components = get_components_from_cell_matrix(cell_matrix).numpy()
    frames = pd.DataFrame(np.repeat(components[np.newaxis, :], number_of_frames, axis=0),
                          columns=CELL_VECTOR_COMPONENTS)
    for index, name in enumerate(STRESS_PROPERTY_NAMES):
        frames[name] = stresses[:, index]
    return frames[FRAME_PROPERTY_NAMES]


@pytest.fixture
def fake_frames_factory():
    return create_fake_frames


def write_to_yaml(document, output_path: str):
    with open(output_path, 'w') as fd:
        yaml.dump(document, fd)


@pytest.fixture
def yaml_writer():
    return write_to_yaml
