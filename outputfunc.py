import logging
import pandas as pd


class OutputFunc:
    """
        Represents a class for generating output of a calculated Result.

        Args:
            - result: Result on which calculate() has run.
            - config: Configuration parameters echoed in the text report (default is None).

        Raises:
            - ValueError: If the Result has not been calculated.
    """

    def __init__(self, result, config=None):
        if not result.calculated:
            raise ValueError("Run calculate() on the Result before generating output.")
        self.result = result
        self.config = config if config is not None else {}

    def dose_rate_table(self):
        """
            Detailed dose rates, one row per (isotope, organism) pair with complete parameters.

            Returns:
                pandas.DataFrame: Activity concentrations (Bq/kg), weighted coefficients and dose rates (Gy/yr).
        """
        res = self.result
        rows = []
        for isotope, organism in res.valid_pairs():
            activity = res.activity_concentrations[isotope]
            water_rate, sediment_rate = res.external_dose_rates[isotope][organism]
            row = {
                'Isotope': isotope,
                'Organism': organism,
                'Activity Water (Bq/kg)': activity['Water'],
                'Activity Sediment (Bq/kg)': activity['Sediment'],
                'Activity Organism (Bq/kg)': activity[organism],
                'Internal coefficient': res.internal_coefficients[isotope][organism],
                'External coefficient': res.external_coefficients[isotope][organism],
                'Internal': res.internal_dose_rates[isotope][organism],
                'External Water': water_rate,
                'External Sediment': sediment_rate,
            }
            for habitat in res.habitats:
                row['Habitat ' + habitat] = res.habitat_dose_rates[habitat][isotope][organism]
            row['Total'] = res.total_dose_rate[isotope][organism]
            rows.append(row)

        columns = ['Isotope', 'Organism', 'Activity Water (Bq/kg)', 'Activity Sediment (Bq/kg)',
                   'Activity Organism (Bq/kg)', 'Internal coefficient', 'External coefficient', 'Internal',
                   'External Water', 'External Sediment'] + ['Habitat ' + h for h in res.habitats] + ['Total']
        return pd.DataFrame(rows, columns=columns)

    def total_dose_rate_table(self):
        """
            Total dose rate (Gy/yr) per organism and isotope, with the sum over isotopes per organism.

            Returns:
                pandas.DataFrame: Organisms as rows, isotopes and 'Sum' as columns.
        """
        df = self.dose_rate_table()
        if df.empty:
            return pd.DataFrame(columns=['Sum'])
        df_total = df.pivot(index='Organism', columns='Isotope', values='Total')
        df_total = df_total.reindex(index=[o for o in self.result.organisms if o in df_total.index],
                                    columns=[i for i in self.result.isotopes if i in df_total.columns])
        df_total['Sum'] = df_total.sum(axis=1)
        return df_total

    def output_to_txt(self, filename):
        """
            Save the assessment input, warnings and dose rates to a text file.

            Parameters:
                filename (str): Name of the output text file.
        """
        res = self.result
        pd.set_option('display.float_format', '{:.3e}'.format)
        with open(filename, 'w') as f:
            f.write('#' * 100 + '\n')
            f.write('# pyERICA: wildlife dose rate assessment following the ERICA methodology\n')
            f.write('#' * 100 + '\n\n')

            f.write('########## YOUR INPUT ##############\n')
            f.write("\n".join("{}:\t{}".format(k, v) for k, v in self.config.items()))
            f.write('\n\n')

            f.write('########## PARAMETERS AFTER GAP FILLING ##############\n')
            f.write('isotopes:\t{}\n'.format(res.isotopes))
            f.write('organisms:\t{}\n'.format(res.organisms))
            f.write('distribution_coefficients (L/kg):\t{}\n'.format(res.distribution_coefficients))
            f.write('concentration_ratios:\t{}\n'.format(res.concentration_ratios))
            f.write('occupancy_factors {}:\t{}\n'.format(list(res.habitats), res.occupancy_factors))
            f.write('radiation_weighting_factors [alpha, beta/gamma, low beta]:\t{}\n'.format(
                res.radiation_weighting_factors))
            f.write('activity_concentrations (Bq/kg):\t{}\n'.format(res.activity_concentrations))
            f.write('percentage_dry_weight:\t{}\n'.format(res.percentage_dry_weight))
            f.write('\n')

            if res.warnings or res.failures:
                f.write('########## WARNINGS ##############\n')
                for warning in res.warnings:
                    f.write('{}\n'.format(warning))
                for (isotope, organism), err in res.failures.items():
                    f.write('{} / {}: {}\n'.format(isotope or 'all isotopes', organism or 'all organisms', err))
                f.write('\n')

            f.write('########## DOSE RATES (Gy/yr) ##############\n')
            f.write(self.dose_rate_table().to_string(index=False))
            f.write('\n\n')
            f.write('########## TOTAL DOSE RATE PER ORGANISM (Gy/yr) ##############\n')
            f.write(self.total_dose_rate_table().to_string())
            f.write('\n')

        logging.getLogger("output").info("output written to {}".format(filename))

    def output_to_csv(self, prefix='pyerica'):
        """
            Save the detailed and the summed dose rate tables as CSV files.

            Returns:
                tuple: Paths of the detailed and summed CSV files.
        """
        detailed = '{}_detailed_dose_rate.csv'.format(prefix)
        summed = '{}_summed_dose_rate.csv'.format(prefix)
        self.dose_rate_table().to_csv(detailed, index=False)
        self.total_dose_rate_table().to_csv(summed)
        logging.getLogger("output").info("dose rate tables written to {} and {}".format(detailed, summed))
        return detailed, summed
