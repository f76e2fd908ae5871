"""Entry point to run one round of the coarse-grained potential fit.

The dynamics are run outside of this program. Each invocation analyzes the measurements of one round,
updates the fitting table and writes the potentials to use in the next trial run.

All the rounds of a fit can share one output directory: after round 0, an existing output directory is
reused, its fitting table is the one of the previous round and its configuration backup must match the
given configuration.
"""

import argparse
import logging
import typing
from pathlib import Path

from elasticity_and_coarse_graining.coarse_graining.boltzmann_inversion import (
    TEMPERATURE_TOLERANCE, BoltzmannInversion,
    create_boltzmann_inversion_parameters)
from elasticity_and_coarse_graining.coarse_graining.fitting_table import (
    FITTING_TABLE_DIRECTORY_NAME, FittingTable)
from elasticity_and_coarse_graining.coarse_graining.measurements import (
    parse_bead_types, parse_measurements, read_potentials, write_potentials)
from elasticity_and_coarse_graining.utils.logging_utils import (
    configure_logging, log_run_details)
from elasticity_and_coarse_graining.utils.main_utils import (
    create_output_directory, load_and_backup_hyperparameters)

logger = logging.getLogger(__name__)


def main(args: typing.Optional[typing.Any] = None):
    """Fit coarse-grained potentials: main entry point of the program."""
    parser = argparse.ArgumentParser()

    parser.add_argument(
        "--config",
        help="Path to configuration file with the Boltzmann inversion parameters in yaml format",
        required=True,
    )

    parser.add_argument(
        "--iteration",
        help="The fitting round to analyze. Round 0 analyzes the reference trajectory.",
        type=int,
        default=0,
    )

    parser.add_argument(
        "--reference",
        help="Path to the measurements on the reference trajectory, in yaml format. Needed for round 0.",
        default=None,
    )

    parser.add_argument(
        "--fitting_table",
        help="Path to the fitting table directory of the previous round. Needed after round 0, "
        "unless the output directory already holds it.",
        default=None,
    )

    parser.add_argument(
        "--trial",
        help="Path to the measurements on the trial trajectory, in yaml format. Needed after round 0.",
        default=None,
    )

    parser.add_argument(
        "--trial_potentials",
        help="Path to the potentials used in the trial run, in yaml format. Needed after round 0.",
        default=None,
    )

    parser.add_argument(
        "--output_directory",
        help="Path to where the outputs will be written.",
        required=True,
    )

    args = parser.parse_args(args)

    resume = args.iteration > 0 and Path(args.output_directory).is_dir()
    if resume and args.fitting_table is None:
        args.fitting_table = str(Path(args.output_directory) / FITTING_TABLE_DIRECTORY_NAME)

    if args.iteration == 0:
        assert args.reference is not None, "The reference measurements are needed for round 0."
    else:
        assert (
            args.fitting_table is not None and args.trial is not None and args.trial_potentials is not None
        ), "The fitting table, the trial measurements and the trial potentials are needed after round 0."

    create_output_directory(args.output_directory, resume=resume)

    configure_logging(output_directory=args.output_directory, log_to_console=True)
    if resume:
        logger.info(f"Previous rounds found in {args.output_directory}: continuing the fit.")
    log_run_details(__file__, args)

    configuration = load_and_backup_hyperparameters(
        config_file_path=args.config, output_directory=args.output_directory
    )

    run(args, configuration)


def run(args: argparse.Namespace, configuration: typing.Dict):
    """Analyze one round and estimate the potentials of the next one.

    Args:
        args: parsed command line arguments.
        configuration: the configuration dictionary. The parameters are under 'boltzmann_inversion'.
    """
    parameters = create_boltzmann_inversion_parameters(configuration.get("boltzmann_inversion", dict()))
    output_directory = Path(args.output_directory)

    if args.iteration == 0:
        boltzmann_inversion = BoltzmannInversion(parameters)
        measurements, _ = parse_measurements(args.reference)
        boltzmann_inversion.find_missing_non_bond_measurements(measurements, parse_bead_types(args.reference))
        boltzmann_inversion.analyze(0, measurements)
    else:
        fitting_table = FittingTable.load(Path(args.fitting_table))
        boltzmann_inversion = BoltzmannInversion(parameters, fitting_table)
        measurements, temperature = parse_measurements(args.trial)
        if temperature is not None and abs(temperature - parameters.temperature) > TEMPERATURE_TOLERANCE:
            logger.warning(
                f"The trial run temperature ({temperature} K) is far from the target "
                f"temperature ({parameters.temperature} K)."
            )
        boltzmann_inversion.analyze(args.iteration, measurements, read_potentials(args.trial_potentials))

    next_iteration = args.iteration + 1
    potentials = boltzmann_inversion.estimate_potentials(next_iteration)

    boltzmann_inversion.fitting_table.save(output_directory / FITTING_TABLE_DIRECTORY_NAME)
    write_potentials(str(output_directory / f"potentials_{next_iteration}.yaml"), potentials)
    logger.info(f"Wrote the potentials for round {next_iteration} in {output_directory}")


if __name__ == "__main__":
    main()
