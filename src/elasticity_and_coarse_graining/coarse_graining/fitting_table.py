import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import yaml

from elasticity_and_coarse_graining.coarse_graining.interactions import \
    BaseInteractionParameters
from elasticity_and_coarse_graining.coarse_graining.potentials import \
    align_to_grid

logger = logging.getLogger(__name__)

FITTING_TABLE_DIRECTORY_NAME = "fitting_table"

_INDEX_FILE_NAME = "fitting_table_index.yaml"


def get_column_headings(iteration: int) -> Tuple[str, str, str]:
    """Get column headings.

    Round 0 holds the reference (target) data. Round n holds the data of the n-th trial run.

    Args:
        iteration: fitting round.

    Returns:
        potential_heading, probability_heading, pmf_heading: headings of the columns for this round.
    """
    if iteration == 0:
        return "Potential", "P (target)", "PMF (target)"
    return f"Potential (trial{iteration})", f"P (trial{iteration})", f"PMF (trial{iteration})"


class FittingTable:
    """Fitting table.

    One sheet per interaction. The first column of a sheet is the grid on which the interaction is
    tabulated; each fitting round adds the potential used in the run, and the measured probability and pmf.
    The table is the only state carried from one fitting round to the next.
    """

    def __init__(self):
        """Init method."""
        self._sheets: Dict[str, pd.DataFrame] = dict()

    @property
    def interaction_names(self) -> List[str]:
        """Names of the interactions, in order of creation."""
        return list(self._sheets.keys())

    def get_sheet(self, name: str) -> pd.DataFrame:
        """Get the sheet of an interaction."""
        assert name in self._sheets, f"There is no sheet for interaction '{name}'."
        return self._sheets[name]

    def get_or_create_sheet(
        self, name: str, interaction_parameters: BaseInteractionParameters
    ) -> pd.DataFrame:
        """Get the sheet of an interaction, creating it with its grid if needed."""
        if name not in self._sheets:
            logger.info(f"Creating fitting table sheet for '{name}'")
            self._sheets[name] = pd.DataFrame(
                {interaction_parameters.x_label: interaction_parameters.get_grid()}
            )
        return self._sheets[name]

    def get_grid(self, name: str) -> np.ndarray:
        """The x values of a sheet."""
        return self.get_sheet(name).iloc[:, 0].to_numpy()

    def set_column(self, name: str, heading: str, x: Sequence[float], y: Sequence[float]):
        """Set a column.

        The data is aligned on the sheet's grid; data points that are not on the grid are skipped.
        An existing column with the same heading is replaced.
        """
        sheet = self.get_sheet(name)
        sheet[heading] = align_to_grid(
            self.get_grid(name), np.asarray(x, dtype=float), np.asarray(y, dtype=float)
        )

    def get_column(self, name: str, heading: str) -> Optional[np.ndarray]:
        """Get a column, or None if it does not exist."""
        sheet = self.get_sheet(name)
        if heading not in sheet.columns:
            return None
        return sheet[heading].to_numpy(dtype=float)

    def save(self, directory: Union[str, Path]):
        """Write every sheet to a parquet file, and an index of the sheets in yaml."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        index = dict()
        for sheet_index, (name, sheet) in enumerate(self._sheets.items()):
            file_name = f"{sheet_index:03d}_{re.sub(r'[^A-Za-z0-9_.-]', '_', name)}.parquet"
            sheet.to_parquet(directory / file_name, engine="pyarrow", index=False)
            index[name] = file_name

        with open(directory / _INDEX_FILE_NAME, "w") as fd:
            yaml.dump(index, fd, sort_keys=False)

    @classmethod
    def load(cls, directory: Union[str, Path]) -> "FittingTable":
        """Read a fitting table written with the save method."""
        directory = Path(directory)
        index_path = directory / _INDEX_FILE_NAME
        if not index_path.is_file():
            raise ValueError(f"{index_path} does not exist. Please provide a valid fitting table directory.")

        with open(index_path, "r") as fd:
            index = yaml.safe_load(fd)

        fitting_table = cls()
        for name, file_name in index.items():
            fitting_table._sheets[name] = pd.read_parquet(directory / file_name, engine="pyarrow")
        return fitting_table
