import copy
import logging
import numpy as np
from errors import MissingIsotopeData, MissingReferenceData
from settingfunc import nuclide_of
from ericafunc import EricaFunc


class Result:
    """
    Represents a dose rate assessment built from a Setting.

    The Result owns an independent copy of every Setting field taken at construction; later changes to the Setting
    are not seen. calculate() fills the gaps of the copied parameters from the ERICA reference table and derives the
    dose rates. Gap filling changes the copied parameters in place, so calculate() runs once per Result.

    Args:
        - setting: Setting with the user-supplied parameters.
        - erica: Reference table (default loads EricaFunc from the bundled library).

    Attributes:
        - isotopes, organisms, distribution_coefficients, concentration_ratios, media, habitats, occupancy_factors,
          radiation_weighting_factors, activity_concentrations, percentage_dry_weight, dose_conversion_coefficients:
          Copies of the Setting fields.
        - internal_coefficients: Weighted internal DCC per isotope and organism.
        - external_coefficients: Weighted external DCC per isotope and organism.
        - internal_dose_rates: Internal dose rate per isotope and organism.
        - external_dose_rates: [water, sediment] external dose rate per isotope and organism.
        - habitat_dose_rates: External dose rate per habitat, isotope and organism.
        - total_dose_rate: Occupancy weighted total dose rate per isotope and organism.
        - warnings: MissingIsotopeData of isotopes skipped for lack of data.
        - failures: MissingReferenceData keyed by (isotope, organism); None stands for every isotope or organism.
    """

    def __init__(self, setting, erica=None):
        self.erica = erica if erica is not None else EricaFunc()

        self.isotopes = list(setting.isotopes)
        self.organisms = list(setting.organisms)
        self.distribution_coefficients = dict(setting.distribution_coefficients)
        self.concentration_ratios = copy.deepcopy(setting.concentration_ratios)
        self.media = list(setting.media)
        self.habitats = copy.deepcopy(setting.habitats)
        self.occupancy_factors = copy.deepcopy(setting.occupancy_factors)
        self.radiation_weighting_factors = list(setting.radiation_weighting_factors)
        self.activity_concentrations = copy.deepcopy(setting.activity_concentrations)
        self.percentage_dry_weight = setting.percentage_dry_weight
        self.dose_conversion_coefficients = copy.deepcopy(setting.dose_conversion_coefficients)

        self.internal_coefficients = {}
        self.external_coefficients = {}
        self.internal_dose_rates = {}
        self.external_dose_rates = {}
        self.habitat_dose_rates = {}
        self.total_dose_rate = {}

        self.warnings = []
        self.skipped_isotopes = {}
        self.failures = {}
        self.calculated = False

    def fill_gaps(self):
        """
            Fill missing parameters from the reference table.

            User-supplied values are never overwritten. For each isotope with activity data the Kd, the missing
            medium activity, the concentration ratios, organism activities and DCCs are completed; afterwards the
            default occupancy factors of organisms without user values are fetched.

            A missing reference value needed for an isotope or an (isotope, organism) pair is recorded in
            self.failures and only that isotope or pair is excluded from the derived dose rates.
        """
        log = logging.getLogger("fill_gaps")

        for isotope in self.isotopes:
            if not self.activity_concentrations.get(isotope):
                warning = MissingIsotopeData(isotope)
                self.warnings.append(warning)
                self.skipped_isotopes[isotope] = warning
                log.warning(str(warning))
                continue

            nuclide = nuclide_of(isotope)
            activity = self.activity_concentrations[isotope]

            try:
                self.fill_media(isotope, nuclide, activity)
            except MissingReferenceData as err:
                self.failures[(isotope, None)] = err
                log.error("{} excluded from the assessment: {}".format(isotope, err))
                continue

            cr = self.concentration_ratios.setdefault(nuclide, {})
            dcc = self.dose_conversion_coefficients.setdefault(isotope, {})

            for organism in self.organisms:
                try:
                    if organism not in cr:
                        try:
                            cr[organism] = self.erica.cr(nuclide, organism)
                        except MissingReferenceData as err:
                            # CR only matters when the organism activity has to be derived
                            if organism not in activity:
                                raise
                            log.warning("{}; using the given activity of {} in {}".format(err, isotope, organism))
                    if organism not in activity and 'Water' in activity:
                        activity[organism] = activity['Water'] * cr[organism]
                    if organism not in dcc:
                        dcc[organism] = self.erica.dcc(isotope, organism)
                except MissingReferenceData as err:
                    self.failures[(isotope, organism)] = err
                    log.error("{} / {} excluded from the assessment: {}".format(isotope, organism, err))

        for organism in self.organisms:
            if organism not in self.occupancy_factors:
                try:
                    self.occupancy_factors[organism] = self.erica.occ(organism)
                except MissingReferenceData as err:
                    self.failures[(None, organism)] = err
                    log.error("{} excluded from the assessment: {}".format(organism, err))

    def fill_media(self, isotope, nuclide, activity):
        """
            Complete the Kd of a nuclide and the Water/Sediment activity of an isotope.

            Water = Sediment / Kd if only Sediment is known, Sediment = Water * Kd if only Water is known.

            Raises:
                MissingReferenceData: If neither medium has an activity, or the Kd needed for the derivation is
                missing or not usable.
        """
        log = logging.getLogger("fill_gaps")
        has_water = 'Water' in activity
        has_sediment = 'Sediment' in activity

        if not has_water and not has_sediment:
            raise MissingReferenceData('activity', (isotope,),
                                       reason="no Water or Sediment activity concentration for {}".format(isotope))

        if nuclide not in self.distribution_coefficients:
            try:
                self.distribution_coefficients[nuclide] = self.erica.kd(nuclide)
            except MissingReferenceData as err:
                if has_water and has_sediment:
                    log.warning("{}; both media given for {}".format(err, isotope))
                    return
                raise

        kd = self.distribution_coefficients[nuclide]
        if has_water and has_sediment:
            return

        # Water = Sediment / Kd needs Kd > 0, Sediment = Water * Kd needs a finite Kd >= 0
        if not np.isfinite(kd) or kd < 0 or (not has_water and kd == 0):
            raise MissingReferenceData('kd', (nuclide,),
                                       reason="Kd of {} is {}; {} activity of {} can't be derived".format(
                                           nuclide, kd, 'Sediment' if has_water else 'Water', isotope))

        if not has_water:
            activity['Water'] = activity['Sediment'] / kd
        elif not has_sediment:
            activity['Sediment'] = activity['Water'] * kd

    def pair_error(self, isotope, organism):
        """Return the recorded error excluding (isotope, organism) from the assessment, or None."""
        if isotope in self.skipped_isotopes:
            return self.skipped_isotopes[isotope]
        for key in [(isotope, organism), (isotope, None), (None, organism)]:
            if key in self.failures:
                return self.failures[key]
        return None

    def valid_pairs(self):
        """(isotope, organism) pairs with complete parameters, in isotope then organism order."""
        return [(isotope, organism) for isotope in self.isotopes for organism in self.organisms
                if self.pair_error(isotope, organism) is None]

    def get_coefficients(self):
        """
            Weight the dose conversion coefficients with the radiation weighting factors.

            DCC element i is multiplied by weighting factor i mod 3; internal coefficient is the sum of weighted
            elements 0-2, external coefficient the sum of elements 3-5.
        """
        weighting_factors = np.tile(np.asarray(self.radiation_weighting_factors, dtype=float), 2)
        for isotope, organism in self.valid_pairs():
            dcc = np.asarray(self.dose_conversion_coefficients[isotope][organism], dtype=float)
            weighted = dcc * weighting_factors
            self.internal_coefficients.setdefault(isotope, {})[organism] = float(weighted[:3].sum())
            self.external_coefficients.setdefault(isotope, {})[organism] = float(weighted[3:].sum())

    def get_internal(self):
        for isotope, organism in self.valid_pairs():
            activity = self.activity_concentrations[isotope][organism]
            self.internal_dose_rates.setdefault(isotope, {})[organism] = \
                float(activity) * self.internal_coefficients[isotope][organism]

    def get_external(self):
        """
            External dose rate per medium, then per habitat weighted with the habitat's
            [water fraction, sediment fraction].
        """
        for isotope, organism in self.valid_pairs():
            coefficient = self.external_coefficients[isotope][organism]
            activity = self.activity_concentrations[isotope]
            self.external_dose_rates.setdefault(isotope, {})[organism] = \
                [float(activity[medium]) * coefficient for medium in self.media]

        for habitat, fractions in self.habitats.items():
            habitat_rates = self.habitat_dose_rates.setdefault(habitat, {})
            for isotope, organism in self.valid_pairs():
                media_rates = self.external_dose_rates[isotope][organism]
                habitat_rates.setdefault(isotope, {})[organism] = \
                    float(np.dot(np.asarray(media_rates, dtype=float), np.asarray(fractions, dtype=float)))

    def get_total(self):
        for isotope, organism in self.valid_pairs():
            occupancy = self.occupancy_factors[organism]
            external = sum(self.habitat_dose_rates[habitat][isotope][organism] * occupancy[ndx]
                           for ndx, habitat in enumerate(self.habitats))
            self.total_dose_rate.setdefault(isotope, {})[organism] = \
                self.internal_dose_rates[isotope][organism] + external

    def calculate(self):
        if self.calculated:
            raise RuntimeError("calculate() runs once per Result; build a new Result from the Setting.")
        self.calculated = True

        self.fill_gaps()
        self.get_coefficients()
        self.get_internal()
        self.get_external()
        self.get_total()

        logging.getLogger("calculate").info(
            "dose rates computed for {} isotope/organism pair(s); {} isotope(s) without data, {} lookup failure(s)"
            .format(len(self.valid_pairs()), len(self.warnings), len(self.failures)))
        return self

    def check_query(self, isotope, organism):
        if not self.calculated:
            raise RuntimeError("Dose rates are not available before calculate().")
        if isotope not in self.isotopes:
            raise ValueError("{} is not an isotope of this assessment.".format(isotope))
        if organism not in self.organisms:
            raise ValueError("{} is not an organism of this assessment.".format(organism))
        error = self.pair_error(isotope, organism)
        if error is not None:
            raise error

    def get_internal_coefficient(self, isotope, organism):
        self.check_query(isotope, organism)
        return self.internal_coefficients[isotope][organism]

    def get_external_coefficient(self, isotope, organism):
        self.check_query(isotope, organism)
        return self.external_coefficients[isotope][organism]

    def get_internal_dose_rate(self, isotope, organism):
        self.check_query(isotope, organism)
        return self.internal_dose_rates[isotope][organism]

    def get_external_dose_rate(self, isotope, organism, medium=None):
        """
            External dose rate of an organism.

            Returns:
                list or float: [water, sediment] dose rates, or the dose rate of one medium if medium is given.
        """
        self.check_query(isotope, organism)
        rates = self.external_dose_rates[isotope][organism]
        if medium is None:
            return list(rates)
        if medium not in self.media:
            raise ValueError("{} is not a medium; choose from {}.".format(medium, self.media))
        return rates[self.media.index(medium)]

    def get_habitat_dose_rate(self, habitat, isotope, organism):
        if habitat not in self.habitats:
            raise ValueError("{} is not a habitat; choose from {}.".format(habitat, list(self.habitats)))
        self.check_query(isotope, organism)
        return self.habitat_dose_rates[habitat][isotope][organism]

    def get_total_dose_rate(self, isotope, organism):
        self.check_query(isotope, organism)
        return self.total_dose_rate[isotope][organism]
