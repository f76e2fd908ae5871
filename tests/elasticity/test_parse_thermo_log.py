import os

import numpy as np
import pytest

from elasticity_and_coarse_graining.elasticity.parse_thermo_log import \
    parse_stress_strain_thermo_log
from elasticity_and_coarse_graining.namespace import FRAME_PROPERTY_NAMES


@pytest.fixture()
def number_of_frames():
    return 5


@pytest.fixture()
def thermo_data(number_of_frames):
    np.random.seed(12231)
    # columns: Step, Temp, Lx, Ly, Lz, Xy, Xz, Yz, Pxx, Pyy, Pzz, Pxy, Pxz, Pyz
    data = np.random.rand(number_of_frames, 14)
    data[:, 0] = 100 * np.arange(number_of_frames)
    data[:, 2:5] += 10.
    data[:, 8:] = 1.0e4 * (data[:, 8:] - 0.5)
    return data


@pytest.fixture()
def fake_thermo_log(tmpdir, thermo_data, yaml_writer):
    keywords = ['Step', 'Temp', 'Lx', 'Ly', 'Lz', 'Xy', 'Xz', 'Yz', 'Pxx', 'Pyy', 'Pzz', 'Pxy', 'Pxz', 'Pyz']
    file = os.path.join(tmpdir, 'thermo_log.yaml')
    yaml_writer(dict(keywords=keywords, data=thermo_data.tolist()), file)
    return file


def test_parse_stress_strain_thermo_log(fake_thermo_log, thermo_data, number_of_frames):
    frames = parse_stress_strain_thermo_log(fake_thermo_log)

    assert list(frames.columns) == FRAME_PROPERTY_NAMES
    assert len(frames) == number_of_frames

    np.testing.assert_allclose(frames['AX'].to_numpy(), thermo_data[:, 2])
    np.testing.assert_allclose(frames['BX'].to_numpy(), thermo_data[:, 5])
    np.testing.assert_allclose(frames['BY'].to_numpy(), thermo_data[:, 3])
    np.testing.assert_allclose(frames['CX'].to_numpy(), thermo_data[:, 6])
    np.testing.assert_allclose(frames['CY'].to_numpy(), thermo_data[:, 7])
    np.testing.assert_allclose(frames['CZ'].to_numpy(), thermo_data[:, 4])
    np.testing.assert_allclose(frames[['AY', 'AZ', 'BZ']].to_numpy(), 0.)

    # bars to GPa, with a sign change from pressure to stress.
    np.testing.assert_allclose(frames['StressXX'].to_numpy(), -1.0e-4 * thermo_data[:, 8])
    np.testing.assert_allclose(frames['StressYZ'].to_numpy(), -1.0e-4 * thermo_data[:, 13])


def test_pressure_to_stress_factor(fake_thermo_log, thermo_data):
    frames = parse_stress_strain_thermo_log(fake_thermo_log, pressure_to_stress_factor=1.0)
    np.testing.assert_allclose(frames['StressXY'].to_numpy(), thermo_data[:, 11])


def test_missing_file(tmpdir):
    with pytest.raises(ValueError):
        parse_stress_strain_thermo_log(os.path.join(tmpdir, 'does_not_exist.yaml'))


def test_missing_keyword(tmpdir, yaml_writer):
    file = os.path.join(tmpdir, 'thermo_log.yaml')
    yaml_writer(dict(keywords=['Step', 'Lx', 'Ly', 'Lz'], data=[[0, 1., 1., 1.]]), file)
    with pytest.raises(AssertionError):
        parse_stress_strain_thermo_log(file)
