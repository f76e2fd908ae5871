import numpy as np
import pandas as pd
import pytest

from elasticity_and_coarse_graining.coarse_graining.fitting_table import (
    FittingTable, get_column_headings)
from elasticity_and_coarse_graining.coarse_graining.interactions import (
    BondInteractionParameters, TorsionInteractionParameters)


@pytest.mark.parametrize("iteration, expected_headings",
                         [(0, ("Potential", "P (target)", "PMF (target)")),
                          (1, ("Potential (trial1)", "P (trial1)", "PMF (trial1)")),
                          (12, ("Potential (trial12)", "P (trial12)", "PMF (trial12)"))])
def test_get_column_headings(iteration, expected_headings):
    assert get_column_headings(iteration) == expected_headings


class TestFittingTable:
    @pytest.fixture()
    def bond_parameters(self):
        return BondInteractionParameters(bin_width=0.5, maximum_length=5.)

    @pytest.fixture()
    def torsion_parameters(self):
        return TorsionInteractionParameters(bin_width=90.)

    @pytest.fixture()
    def fitting_table(self, bond_parameters, torsion_parameters):
        fitting_table = FittingTable()
        fitting_table.get_or_create_sheet("bond A,B", bond_parameters)
        fitting_table.get_or_create_sheet("torsion A,B,B,A", torsion_parameters)

        fitting_table.set_column("bond A,B", "P (target)", [1., 1.5, 1.75, 2.], [0.2, 0.6, 0.9, 0.2])
        fitting_table.set_column("torsion A,B,B,A", "PMF (target)", [-180., 0., 180.], [1., -1., 1.])
        return fitting_table

    def test_interaction_names(self, fitting_table):
        assert fitting_table.interaction_names == ["bond A,B", "torsion A,B,B,A"]

    def test_get_or_create_sheet_is_idempotent(self, fitting_table, bond_parameters):
        sheet = fitting_table.get_or_create_sheet("bond A,B", bond_parameters)
        assert "P (target)" in sheet.columns

    def test_sheet_grid(self, fitting_table, bond_parameters):
        sheet = fitting_table.get_sheet("bond A,B")
        assert sheet.columns[0] == bond_parameters.x_label
        np.testing.assert_allclose(fitting_table.get_grid("bond A,B"), bond_parameters.get_grid())

    def test_set_column_aligns_to_grid(self, fitting_table):
        expected_column = np.full(10, np.nan)
        expected_column[2] = 0.2
        expected_column[3] = 0.6
        expected_column[4] = 0.2
        np.testing.assert_allclose(fitting_table.get_column("bond A,B", "P (target)"), expected_column)

        np.testing.assert_allclose(fitting_table.get_column("torsion A,B,B,A", "PMF (target)"),
                                   [1., np.nan, -1., np.nan, 1.])

    def test_set_column_replaces_existing_column(self, fitting_table):
        fitting_table.set_column("torsion A,B,B,A", "PMF (target)", [-90.], [3.])
        np.testing.assert_allclose(fitting_table.get_column("torsion A,B,B,A", "PMF (target)"),
                                   [np.nan, 3., np.nan, np.nan, np.nan])

    def test_missing_column(self, fitting_table):
        assert fitting_table.get_column("bond A,B", "P (trial3)") is None

    def test_missing_sheet(self, fitting_table):
        with pytest.raises(AssertionError):
            fitting_table.get_sheet("angle A,B,A")

    def test_save_and_load(self, fitting_table, tmp_path):
        directory = tmp_path / "fitting_table"
        fitting_table.save(directory)

        loaded_fitting_table = FittingTable.load(directory)

        assert loaded_fitting_table.interaction_names == fitting_table.interaction_names
        for name in fitting_table.interaction_names:
            pd.testing.assert_frame_equal(loaded_fitting_table.get_sheet(name), fitting_table.get_sheet(name))

    def test_load_missing_directory(self, tmp_path):
        with pytest.raises(ValueError):
            FittingTable.load(tmp_path / "not_there")
