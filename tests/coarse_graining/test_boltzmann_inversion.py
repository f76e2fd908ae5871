from typing import Dict

import numpy as np
import pytest

from elasticity_and_coarse_graining.coarse_graining.boltzmann_inversion import (
    BoltzmannInversion, BoltzmannInversionParameters,
    create_boltzmann_inversion_parameters)
from elasticity_and_coarse_graining.coarse_graining.interactions import (
    BondInteractionParameters, NonBondInteractionParameters,
    TorsionInteractionParameters)
from elasticity_and_coarse_graining.coarse_graining.measurements import (
    InteractionMeasurement, read_potentials)
from elasticity_and_coarse_graining.coarse_graining.potentials import \
    compute_thermal_energy
from elasticity_and_coarse_graining.coarse_graining.trial_simulation import (
    BaseTrialSimulation, TrialSimulationResult)
from elasticity_and_coarse_graining.exceptions import EmptyDistributionError
from elasticity_and_coarse_graining.namespace import (BOND, NON_BOND, TORSION,
                                                      Distribution,
                                                      TabulatedPotential)


class FakeTrialSimulation(BaseTrialSimulation):
    """A trial simulation that reproduces the reference measurements at a fixed temperature."""

    def __init__(self, measurements: Dict[str, InteractionMeasurement], temperature: float):
        self.measurements = measurements
        self.temperature = temperature
        self.calls = []

    def run(self, iteration: int, potentials: Dict[str, TabulatedPotential]) -> TrialSimulationResult:
        self.calls.append((iteration, potentials))
        return TrialSimulationResult(measurements=self.measurements, temperature=self.temperature)


def test_create_boltzmann_inversion_parameters():
    configuration = dict(temperature=350., number_of_iterations=3, relaxation_factor=0.5,
                         van_der_waals_combination_rule="Geometric",
                         interactions=[dict(kind=BOND, bin_width=0.02), dict(kind=NON_BOND, cutoff=10.)])

    parameters = create_boltzmann_inversion_parameters(configuration)

    assert parameters.temperature == 350.
    assert parameters.number_of_iterations == 3
    assert parameters.relaxation_factor == 0.5
    assert not parameters.use_cross_terms
    assert set(parameters.interactions.keys()) == {BOND, NON_BOND}
    assert parameters.interactions[BOND].bin_width == 0.02
    assert parameters.interactions[NON_BOND].cutoff == 10.
    # the input is not modified.
    assert len(configuration["interactions"]) == 2


def test_default_boltzmann_inversion_parameters():
    parameters = create_boltzmann_inversion_parameters(dict())
    assert parameters.temperature == 298.
    assert parameters.distribution_cutoff == 0.005
    assert parameters.number_of_iterations == 10
    assert parameters.relaxation_factor == 1.
    assert parameters.start_iteration == 1
    assert parameters.use_cross_terms
    assert parameters.interactions == dict()


def test_duplicated_interaction_kind():
    with pytest.raises(AssertionError):
        create_boltzmann_inversion_parameters(dict(interactions=[dict(kind=BOND), dict(kind=BOND)]))


class TestBoltzmannInversion:
    @pytest.fixture(scope="class", autouse=True)
    def set_seed(self):
        """Set the random seed."""
        np.random.seed(2342342)

    @pytest.fixture()
    def bond_parameters(self):
        return BondInteractionParameters(bin_width=0.1, maximum_length=5.)

    @pytest.fixture()
    def non_bond_parameters(self):
        return NonBondInteractionParameters(bin_width=0.5, cutoff=10., num_zeroes_until_cutoff=2)

    @pytest.fixture()
    def parameters(self, bond_parameters, non_bond_parameters):
        return BoltzmannInversionParameters(number_of_iterations=3,
                                            interactions={BOND: bond_parameters, NON_BOND: non_bond_parameters})

    @pytest.fixture()
    def rdf(self, non_bond_parameters):
        r = non_bond_parameters.get_grid()
        g = np.where(r < 3., 0., 1. + 0.5 * np.exp(-(r - 3.5)) * np.cos(2. * (r - 3.5)))
        return Distribution(x=r, probability=g)

    @pytest.fixture()
    def reference_measurements(self, rdf):
        return {"bond B,A": InteractionMeasurement(name="bond B,A", samples=1.5 + 0.1 * np.random.randn(5000)),
                "non-bond A,A": InteractionMeasurement(name="non-bond A,A", distribution=rdf),
                "non-bond B,A": InteractionMeasurement(name="non-bond B,A", distribution=rdf),
                "angle A,B,A": InteractionMeasurement(name="angle A,B,A", samples=100. + np.random.randn(100))}

    @pytest.fixture()
    def analyzed_boltzmann_inversion(self, parameters, reference_measurements):
        boltzmann_inversion = BoltzmannInversion(parameters)
        boltzmann_inversion.analyze(0, reference_measurements)
        return boltzmann_inversion

    def test_analyze_reference(self, analyzed_boltzmann_inversion):
        fitting_table = analyzed_boltzmann_inversion.fitting_table
        # the names are canonicalized and the angles, which are not fitted, are skipped.
        assert fitting_table.interaction_names == ["bond A,B", "non-bond A,A", "non-bond A,B"]
        for name in fitting_table.interaction_names:
            assert fitting_table.get_column(name, "P (target)") is not None
            assert fitting_table.get_column(name, "PMF (target)") is not None
            assert fitting_table.get_column(name, "Potential") is None

    def test_cross_terms_are_skipped_with_combination_rule(self, bond_parameters, reference_measurements):
        parameters = BoltzmannInversionParameters(van_der_waals_combination_rule="Geometric",
                                                  interactions={BOND: bond_parameters,
                                                                NON_BOND: NonBondInteractionParameters()})
        boltzmann_inversion = BoltzmannInversion(parameters)
        boltzmann_inversion.analyze(0, reference_measurements)
        assert boltzmann_inversion.fitting_table.interaction_names == ["bond A,B", "non-bond A,A"]

    def test_non_bond_pmf(self, analyzed_boltzmann_inversion, rdf):
        kT = compute_thermal_energy(298.)
        pmf = analyzed_boltzmann_inversion.fitting_table.get_column("non-bond A,A", "PMF (target)")
        expected_pmf = np.full(len(rdf.x), np.nan)
        mask = rdf.probability > 0.
        expected_pmf[mask] = -kT * np.log(rdf.probability[mask])
        np.testing.assert_allclose(pmf, expected_pmf)

    def test_first_round_potentials(self, analyzed_boltzmann_inversion, bond_parameters):
        potentials = analyzed_boltzmann_inversion.estimate_potentials(1)

        assert set(potentials.keys()) == {"bond A,B", "non-bond A,A", "non-bond A,B"}
        bond_potential = potentials["bond A,B"]
        np.testing.assert_allclose(bond_potential.x, bond_parameters.get_grid())
        assert np.all(np.isfinite(bond_potential.energy))

        # the bond potential is a harmonic well centred on the mean bond length.
        minimum_index = np.argmin(bond_potential.energy)
        np.testing.assert_allclose(bond_potential.x[minimum_index], 1.5, atol=0.11)

        # the non-bond potential is zero beyond its second zero.
        non_bond_energy = potentials["non-bond A,A"].energy
        assert np.all(np.isfinite(non_bond_energy))
        assert non_bond_energy[-1] == 0.

    def test_find_missing_non_bond_measurements(self, parameters, reference_measurements):
        boltzmann_inversion = BoltzmannInversion(parameters)
        bead_types = [("A", "Alpha"), ("B", "Beta"), ("", "Carbon")]

        missing_names = boltzmann_inversion.find_missing_non_bond_measurements(reference_measurements, bead_types)

        assert missing_names == ["non-bond B,B", "non-bond Carb,Carb", "non-bond A,Carb", "non-bond B,Carb"]

    def test_no_missing_non_bond_measurements_when_non_bond_is_not_fitted(self, bond_parameters,
                                                                           reference_measurements):
        boltzmann_inversion = BoltzmannInversion(BoltzmannInversionParameters(interactions={BOND: bond_parameters}))
        bead_types = [("A", "Alpha"), ("C", "Carbon")]
        assert boltzmann_inversion.find_missing_non_bond_measurements(reference_measurements, bead_types) == []

    def test_empty_distribution(self, parameters):
        boltzmann_inversion = BoltzmannInversion(parameters)
        boltzmann_inversion.analyze(0, {"bond A,B": InteractionMeasurement(name="bond A,B",
                                                                           samples=np.array([100., 200.]))})
        with pytest.raises(EmptyDistributionError):
            boltzmann_inversion.estimate_potentials(1)

    def test_run(self, parameters, reference_measurements, tmp_path):
        trial_simulation = FakeTrialSimulation(reference_measurements, temperature=299.)
        boltzmann_inversion = BoltzmannInversion(parameters)

        potentials = boltzmann_inversion.run(reference_measurements, trial_simulation, output_directory=tmp_path)

        assert [iteration for iteration, _ in trial_simulation.calls] == [1, 2, 3]
        for heading in ["Potential (trial3)", "P (trial3)", "PMF (trial3)"]:
            assert boltzmann_inversion.fitting_table.get_column("bond A,B", heading) is not None

        # the trial runs reproduce the reference: the bond potential does not change from round to round.
        first_round_potentials = trial_simulation.calls[0][1]
        np.testing.assert_allclose(potentials["bond A,B"].energy, first_round_potentials["bond A,B"].energy)

        for iteration in [1, 2, 3]:
            assert (tmp_path / f"potentials_{iteration}.yaml").is_file()
        assert (tmp_path / "fitting_table" / "fitting_table_index.yaml").is_file()

        written_potentials = read_potentials(str(tmp_path / "potentials_3.yaml"))
        np.testing.assert_allclose(written_potentials["bond A,B"].energy, potentials["bond A,B"].energy)

    def test_temperature_out_of_control(self, parameters, reference_measurements):
        trial_simulation = FakeTrialSimulation(reference_measurements, temperature=310.)
        boltzmann_inversion = BoltzmannInversion(parameters)
        with pytest.raises(RuntimeError, match="Temperature out of control"):
            boltzmann_inversion.run(reference_measurements, trial_simulation)
        assert len(trial_simulation.calls) == 1

    def test_restart_needs_fitting_table(self, bond_parameters, reference_measurements):
        parameters = BoltzmannInversionParameters(number_of_iterations=3, start_iteration=2,
                                                  interactions={BOND: bond_parameters})
        trial_simulation = FakeTrialSimulation(reference_measurements, temperature=298.)
        with pytest.raises(AssertionError):
            BoltzmannInversion(parameters).run(reference_measurements, trial_simulation)

    def test_restart_from_fitting_table(self, bond_parameters, reference_measurements):
        parameters = BoltzmannInversionParameters(number_of_iterations=3, interactions={BOND: bond_parameters})
        trial_simulation = FakeTrialSimulation(reference_measurements, temperature=298.)
        boltzmann_inversion = BoltzmannInversion(parameters)
        boltzmann_inversion.run(reference_measurements, trial_simulation)

        restart_parameters = BoltzmannInversionParameters(number_of_iterations=5, start_iteration=4,
                                                          interactions={BOND: bond_parameters})
        restart_trial_simulation = FakeTrialSimulation(reference_measurements, temperature=298.)
        BoltzmannInversion(restart_parameters, boltzmann_inversion.fitting_table).run(reference_measurements,
                                                                                     restart_trial_simulation)
        assert [iteration for iteration, _ in restart_trial_simulation.calls] == [4, 5]


def test_uniform_torsions_give_flat_potential():
    parameters = BoltzmannInversionParameters(interactions={TORSION: TorsionInteractionParameters(bin_width=5.)})
    # 100 evenly spaced torsions per bin over the full period.
    samples = -180. + 0.05 * (np.arange(7200) + 0.5)
    boltzmann_inversion = BoltzmannInversion(parameters)
    boltzmann_inversion.analyze(0, {"torsion A,B,B,A": InteractionMeasurement(name="torsion A,B,B,A",
                                                                              samples=samples)})

    potential = boltzmann_inversion.estimate_potential("torsion A,B,B,A", 1)

    assert len(potential.energy) == 73
    np.testing.assert_allclose(potential.energy, potential.energy[36], atol=1e-10)
