import os
import logging
import numpy as np
import pandas as pd
from errors import InvalidParameterShape, MissingReferenceData
from settingfunc import HABITATS, check_parameter_array

DCC_COLUMNS = ['int_alpha', 'int_beta_gamma', 'int_low_beta', 'ext_alpha', 'ext_beta_gamma', 'ext_low_beta']
OCC_COLUMNS = list(HABITATS)


class EricaFunc:
    """
    Represents the ERICA reference coefficient table (freshwater ecosystem).

    The table is read once from CSV files in a library directory and is only read afterwards, so one instance can
    serve any number of assessments.

    Args:
        - library_dir: Directory holding erica_kd.csv, erica_cr.csv, erica_dcc.csv and erica_occupancy.csv
          (default is the library directory next to this module).

    Attributes:
        - kd_table: Distribution coefficients (L/kg) indexed by nuclide.
        - cr_table: Concentration ratios indexed by (nuclide, organism).
        - dcc_table: Dose conversion coefficients (Gy/yr per Bq/kg) indexed by (isotope, organism).
        - occ_table: Default occupancy factors indexed by organism.

    Raises:
        - FileNotFoundError: If a library file is missing.
        - ValueError: If a library file lacks a required column.
    """

    def __init__(self, library_dir=None):
        if library_dir is None:
            library_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'library')
        self.library_dir = library_dir

        self.kd_table = self.read_library_file('erica_kd.csv', ['Nuclide'], ['Kd_L_per_kg'])
        self.cr_table = self.read_library_file('erica_cr.csv', ['Nuclide', 'Organism'], ['CR'])
        self.dcc_table = self.read_library_file('erica_dcc.csv', ['Isotope', 'Organism'], DCC_COLUMNS)
        self.occ_table = self.read_library_file('erica_occupancy.csv', ['Organism'], OCC_COLUMNS)

        logging.getLogger("erica").info(
            "reference table loaded from {}: {} nuclides, {} isotopes, {} organisms".format(
                self.library_dir, len(self.kd_table), len(self.isotopes()), len(self.organisms())))

    def read_library_file(self, file_name, index_columns, value_columns):
        """
            Read one CSV file of the reference library.

            Args:
                file_name (str): File name inside the library directory.
                index_columns (list): Key columns, used as (multi-)index.
                value_columns (list): Numeric columns that must be present.

            Returns:
                pandas.DataFrame: Table of value_columns indexed by index_columns.
        """
        file_path = os.path.join(self.library_dir, file_name)
        df = pd.read_csv(file_path, skipinitialspace=True)
        df.dropna(axis=0, how='all', inplace=True)
        missing = [c for c in index_columns + value_columns if c not in df.columns]
        if missing:
            raise ValueError("{} lacks column(s): {}".format(file_path, ", ".join(missing)))
        for col in index_columns:
            df[col] = df[col].astype(str).str.strip()
        df[value_columns] = df[value_columns].apply(pd.to_numeric, errors='coerce')
        df = df.drop_duplicates(subset=index_columns, keep='first')
        return df.set_index(index_columns)[value_columns].sort_index()

    def kd(self, nuclide):
        """Distribution coefficient (L/kg) of a nuclide."""
        try:
            value = self.kd_table.loc[nuclide, 'Kd_L_per_kg']
        except KeyError:
            raise MissingReferenceData('kd', (nuclide,))
        if pd.isna(value):
            raise MissingReferenceData('kd', (nuclide,))
        return float(value)

    def cr(self, nuclide, organism):
        """Concentration ratio of a nuclide for an organism."""
        try:
            value = self.cr_table.loc[(nuclide, organism), 'CR']
        except KeyError:
            raise MissingReferenceData('cr', (nuclide, organism))
        if pd.isna(value):
            raise MissingReferenceData('cr', (nuclide, organism))
        return float(value)

    def dcc(self, isotope, organism):
        """
            Dose conversion coefficients of an isotope for an organism.

            Returns:
                list: 6 floats (internal alpha, beta/gamma, low beta, external alpha, beta/gamma, low beta).
        """
        try:
            row = self.dcc_table.loc[(isotope, organism), DCC_COLUMNS]
        except KeyError:
            raise MissingReferenceData('dcc', (isotope, organism))
        values = np.asarray(row, dtype=float)
        if np.isnan(values).any():
            raise MissingReferenceData('dcc', (isotope, organism))
        return values.tolist()

    def occ(self, organism):
        """
            Default occupancy factors of an organism, in habitat order
            (Water-surface, Water, Sediment-surface, Sediment).
        """
        try:
            row = self.occ_table.loc[organism, OCC_COLUMNS]
        except KeyError:
            raise MissingReferenceData('occ', (organism,))
        try:
            return check_parameter_array(row.tolist(), len(OCC_COLUMNS), 'occupancy factors', upper=1.0)
        except InvalidParameterShape as err:
            raise MissingReferenceData('occ', (organism,),
                                       reason="invalid reference occupancy factors for {}: {}".format(organism, err))

    def isotopes(self):
        """Isotope names available in the dose conversion coefficient table."""
        return list(dict.fromkeys(self.dcc_table.index.get_level_values('Isotope')))

    def organisms(self):
        """Organism names with default occupancy factors."""
        return list(self.occ_table.index)
