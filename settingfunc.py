import logging
import numpy as np
from errors import InvalidParameterShape

MEDIA = ["Water", "Sediment"]

# [water fraction, sediment fraction] per habitat; order matches occupancy factor arrays
HABITATS = {
    "Water-surface": [0.5, 0.0],
    "Water": [1.0, 0.0],
    "Sediment-surface": [0.5, 0.5],
    "Sediment": [0.0, 1.0],
}

DEFAULT_RADIATION_WEIGHTING_FACTORS = [10.0, 1.0, 3.0]


def nuclide_of(isotope):
    """
    Return the nuclide (element symbol) of an isotope name, e.g. 'Cs' for 'Cs-137'.
    """
    return isotope.split('-')[0]


def check_parameter_array(values, length, name, upper=None):
    """
        Validate a parameter array and return it as a list of floats.

        Args:
            values: Sequence of numbers.
            length (int): Required number of elements.
            name (str): Parameter name used in the error message.
            upper (float, optional): Inclusive upper bound of each element. Lower bound is always 0.

        Returns:
            list: Values converted to float.

        Raises:
            InvalidParameterShape: If the length is wrong or a value is outside [0, upper].
    """
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError):
        raise InvalidParameterShape("{} must be an array of {} numbers, got {!r}".format(name, length, values))
    if arr.ndim != 1 or arr.shape[0] != length:
        raise InvalidParameterShape("{} must be an array of {} numbers, got {!r}".format(name, length, values))
    if np.isnan(arr).any() or (arr < 0).any():
        raise InvalidParameterShape("{} must not contain negative values, got {!r}".format(name, values))
    if upper is not None and (arr > upper).any():
        raise InvalidParameterShape("{} must lie in [0, {}], got {!r}".format(name, upper, values))
    return [float(v) for v in arr]


class Setting:
    """
    Represents the radioecological input of an assessment.

    Isotopes and organisms are kept as insertion-ordered unique lists so that derived output is reproducible.
    Setters of nested maps (concentration ratios, activity concentrations, dose conversion coefficients) merge
    into the existing per-key map by default. Passing merge=False replaces the whole per-key map, discarding
    values set earlier for other organisms/media under the same key.

    Attributes:
        - isotopes: Isotope names, e.g. 'Cs-137'.
        - organisms: Organism names.
        - distribution_coefficients: Kd (L/kg) per nuclide.
        - concentration_ratios: CR per nuclide and organism.
        - media: Fixed ['Water', 'Sediment'].
        - habitats: Fixed [water fraction, sediment fraction] per habitat.
        - occupancy_factors: Fraction of time spent in each habitat per organism.
        - radiation_weighting_factors: [alpha, beta/gamma, low beta].
        - activity_concentrations: Bq/kg per isotope and medium or organism.
        - percentage_dry_weight: Percentage dry weight of sediment.
        - dose_conversion_coefficients: 6 DCCs per isotope and organism.
    """

    def __init__(self):
        self.isotopes = []
        self.organisms = []
        self.distribution_coefficients = {}
        self.concentration_ratios = {}
        self.media = list(MEDIA)
        self.habitats = {habitat: list(weights) for habitat, weights in HABITATS.items()}
        self.occupancy_factors = {}
        self.radiation_weighting_factors = list(DEFAULT_RADIATION_WEIGHTING_FACTORS)
        self.activity_concentrations = {}
        self.percentage_dry_weight = 100
        self.dose_conversion_coefficients = {}

    def add_isotope(self, isotope):
        if isotope not in self.isotopes:
            self.isotopes.append(isotope)

    def add_organism(self, organism):
        if organism not in self.organisms:
            self.organisms.append(organism)

    def set_distribution_coefficients(self, nuclide, value):
        self.distribution_coefficients[nuclide] = value

    def set_concentration_ratios(self, nuclide, organism, value, merge=True):
        if not merge or nuclide not in self.concentration_ratios:
            self.concentration_ratios[nuclide] = {}
        self.concentration_ratios[nuclide][organism] = value

    def set_occupancy_factors(self, organism, values):
        """
            Set occupancy factors of an organism.

            values must be an array of 4 floats in [0, 1] in order:
                - Water-surface
                - Water
                - Sediment-surface
                - Sediment
        """
        values = check_parameter_array(values, len(self.habitats), 'occupancy factors', upper=1.0)
        if sum(values) > 1.0 + 1e-9:
            logging.getLogger("setting").warning(
                "occupancy factors of {} sum to {:.3f} (> 1)".format(organism, sum(values)))
        self.occupancy_factors[organism] = values

    def set_radiation_weighting_factors(self, values):
        """
            Set radiation weighting factors.

            values must be an array of 3 floats in [0, +inf) in order:
                - alpha
                - beta/gamma
                - low beta
        """
        self.radiation_weighting_factors = check_parameter_array(values, 3, 'radiation weighting factors')

    def set_activity_concentrations(self, isotope, object, value, merge=True):
        # object is a medium ('Water', 'Sediment') or an organism name
        if not merge or isotope not in self.activity_concentrations:
            self.activity_concentrations[isotope] = {}
        self.activity_concentrations[isotope][object] = value

    def set_percentage_dry_weight(self, value):
        # value in [0, 100]
        self.percentage_dry_weight = value

    def set_dose_conversion_coefficients(self, isotope, organism, values, merge=True):
        """
            Set dose conversion coefficients (Gy/yr per Bq/kg).

            values must be an array of 6 floats in [0, +inf) in order:
                - internal alpha
                - internal beta/gamma
                - internal low beta
                - external alpha
                - external beta/gamma
                - external low beta
        """
        values = check_parameter_array(values, 6, 'dose conversion coefficients')
        if not merge or isotope not in self.dose_conversion_coefficients:
            self.dose_conversion_coefficients[isotope] = {}
        self.dose_conversion_coefficients[isotope][organism] = values


def setting_from_config(config):
    """
        Build a Setting from a parsed assessment configuration.

        Args:
            config (dict): Parsed YAML configuration. Recognised keys: isotopes, organisms,
                distribution_coefficients, concentration_ratios, occupancy_factors, radiation_weighting_factors,
                activity_concentrations, percentage_dry_weight, dose_conversion_coefficients.

        Returns:
            Setting: Setting populated with the configured values.

        Raises:
            ValueError: If no isotope or no organism is given.
            InvalidParameterShape: If a parameter array is malformed.
    """
    setting = Setting()

    isotopes = config.get('isotopes')
    if not isotopes:
        raise ValueError("Must provide the list of isotopes for dose rate estimation.")
    organisms = config.get('organisms')
    if not organisms:
        raise ValueError("Must provide the list of organisms for dose rate estimation.")

    for isotope in isotopes:
        setting.add_isotope(isotope)
    for organism in organisms:
        setting.add_organism(organism)

    for nuclide, value in (config.get('distribution_coefficients') or {}).items():
        setting.set_distribution_coefficients(nuclide, float(value))

    for nuclide, ratios in (config.get('concentration_ratios') or {}).items():
        for organism, value in ratios.items():
            setting.set_concentration_ratios(nuclide, organism, float(value))

    for organism, values in (config.get('occupancy_factors') or {}).items():
        setting.set_occupancy_factors(organism, values)

    if config.get('radiation_weighting_factors'):
        setting.set_radiation_weighting_factors(config['radiation_weighting_factors'])

    for isotope, activities in (config.get('activity_concentrations') or {}).items():
        for obj, value in activities.items():
            setting.set_activity_concentrations(isotope, obj, float(value))

    if config.get('percentage_dry_weight') is not None:
        setting.set_percentage_dry_weight(float(config['percentage_dry_weight']))

    for isotope, dccs in (config.get('dose_conversion_coefficients') or {}).items():
        for organism, values in dccs.items():
            setting.set_dose_conversion_coefficients(isotope, organism, values)

    return setting
