"""Entry point to compute a stress-strain curve from constant stress trajectories."""

import argparse
import logging
import typing
from pathlib import Path

from elasticity_and_coarse_graining.elasticity.parse_thermo_log import (
    BAR_TO_GPA_STRESS_FACTOR, parse_stress_strain_thermo_log)
from elasticity_and_coarse_graining.elasticity.stress_strain import (
    StressStrainParameters, analyze_equilibration_cycles,
    analyze_stress_strain_curve)
from elasticity_and_coarse_graining.utils.logging_utils import (
    configure_logging, log_run_details)
from elasticity_and_coarse_graining.utils.main_utils import (
    create_output_directory, load_and_backup_hyperparameters)

logger = logging.getLogger(__name__)


def main(args: typing.Optional[typing.Any] = None):
    """Analyze a stress-strain calculation: main entry point of the program."""
    parser = argparse.ArgumentParser()

    parser.add_argument(
        "--config",
        help="Path to configuration file with the stress-strain parameters in yaml format",
        required=True,
    )

    parser.add_argument(
        "--zero_stress_log",
        help="Path to the LAMMPS thermo log, in yaml format, of the run at zero stress.",
        required=True,
    )

    parser.add_argument(
        "--stressed_logs",
        help="Paths to the LAMMPS thermo logs, in yaml format, of the runs at finite stress. "
        "They must be in the same order as the stresses in the configuration file.",
        nargs="+",
        default=[],
    )

    parser.add_argument(
        "--equilibration_cycle_logs",
        help="Paths to the LAMMPS thermo logs, in yaml format, of the zero stress equilibration cycles, in order. "
        "If given, the averaged cell of each cycle is reported.",
        nargs="*",
        default=[],
    )

    parser.add_argument(
        "--output_directory",
        help="Path to where the outputs will be written.",
        required=True,
    )

    args = parser.parse_args(args)

    create_output_directory(args.output_directory)

    configure_logging(output_directory=args.output_directory, log_to_console=True)
    log_run_details(__file__, args)

    configuration = load_and_backup_hyperparameters(
        config_file_path=args.config, output_directory=args.output_directory
    )

    run(args, configuration)


def run(args: argparse.Namespace, configuration: typing.Dict):
    """Compute the stress-strain table and write it to disk.

    Args:
        args: parsed command line arguments.
        configuration: the configuration dictionary. The stress-strain parameters are under 'stress_strain'.
    """
    parameters = StressStrainParameters(**configuration.get("stress_strain", dict()))
    pressure_to_stress_factor = configuration.get("pressure_to_stress_factor", BAR_TO_GPA_STRESS_FACTOR)

    assert len(args.stressed_logs) == len(parameters.stresses), (
        f"There are {len(parameters.stresses)} stresses in the configuration, "
        f"but {len(args.stressed_logs)} thermo logs were given."
    )

    zero_stress_frames = parse_stress_strain_thermo_log(args.zero_stress_log, pressure_to_stress_factor)
    list_stressed_frames = [
        (stress, parse_stress_strain_thermo_log(thermo_log, pressure_to_stress_factor))
        for stress, thermo_log in zip(parameters.stresses, args.stressed_logs)
    ]

    stress_strain_table = analyze_stress_strain_curve(parameters, zero_stress_frames, list_stressed_frames)

    output_directory = Path(args.output_directory)

    if len(args.equilibration_cycle_logs) > 0:
        list_cycle_frames = [
            parse_stress_strain_thermo_log(thermo_log, pressure_to_stress_factor)
            for thermo_log in args.equilibration_cycle_logs
        ]
        equilibration_cycle_table = analyze_equilibration_cycles(parameters, list_cycle_frames)
        equilibration_cycle_table.to_csv(output_directory / "equilibration_cycles.csv", index=False)

    stress_strain_table.to_csv(output_directory / "stress_strain.csv", index=False)
    stress_strain_table.to_parquet(output_directory / "stress_strain.parquet", engine="pyarrow", index=False)
    logger.info(f"Stress-strain table:\n{stress_strain_table.to_string()}")


if __name__ == "__main__":
    main()
