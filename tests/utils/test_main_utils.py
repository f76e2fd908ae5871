import os

import pytest
import yaml

from elasticity_and_coarse_graining.utils.main_utils import (
    create_output_directory, load_and_backup_hyperparameters)


@pytest.fixture()
def hyperparameters():
    return dict(stress_strain=dict(stress_component="XY", stresses=[0.5, 1.0]),
                pressure_to_stress_factor=-1.0e-4)


@pytest.fixture()
def config_file(tmpdir, hyperparameters):
    config_file_path = os.path.join(tmpdir, "config.yaml")
    with open(config_file_path, "w") as fd:
        yaml.dump(hyperparameters, fd)
    return config_file_path


@pytest.fixture()
def output_directory(tmpdir):
    output_directory = os.path.join(tmpdir, "output")
    os.mkdir(output_directory)
    return output_directory


def test_load_and_backup_hyperparameters(config_file, output_directory, hyperparameters):
    loaded_hyperparameters = load_and_backup_hyperparameters(config_file, output_directory)
    assert loaded_hyperparameters == hyperparameters

    with open(os.path.join(output_directory, "config_backup.yaml"), "r") as fd:
        backup_hyperparameters = yaml.safe_load(fd)
    assert backup_hyperparameters == hyperparameters


def test_identical_backup_is_accepted(config_file, output_directory, hyperparameters):
    load_and_backup_hyperparameters(config_file, output_directory)
    assert load_and_backup_hyperparameters(config_file, output_directory) == hyperparameters


def test_different_backup_is_rejected(config_file, output_directory, hyperparameters):
    load_and_backup_hyperparameters(config_file, output_directory)

    hyperparameters["stress_strain"]["stress_component"] = "XX"
    with open(config_file, "w") as fd:
        yaml.dump(hyperparameters, fd)

    with pytest.raises(AssertionError):
        load_and_backup_hyperparameters(config_file, output_directory)


def test_no_config_file(output_directory):
    assert load_and_backup_hyperparameters(None, output_directory) == dict()


def test_create_output_directory(tmpdir):
    output_directory = create_output_directory(os.path.join(tmpdir, "run", "output"))
    assert output_directory.is_dir()

    with pytest.raises(Exception, match="already exists"):
        create_output_directory(output_directory)


def test_create_output_directory_resume(tmpdir):
    output_directory = create_output_directory(os.path.join(tmpdir, "output"))
    (output_directory / "some_result.txt").write_text("previous round")

    resumed_output_directory = create_output_directory(output_directory, resume=True)
    assert resumed_output_directory == output_directory
    assert (resumed_output_directory / "some_result.txt").is_file()
