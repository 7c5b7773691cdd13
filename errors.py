class EricaError(Exception):
    """
    Base class for errors raised during a wildlife dose-rate assessment.
    """


class MissingIsotopeData(EricaError):
    """
    No activity concentration was given for an isotope.

    Non-fatal: the isotope is skipped during gap filling and left out of every derived dose rate.
    """

    def __init__(self, isotope):
        self.isotope = isotope
        super().__init__("Can't find any data for {}".format(isotope))


class MissingReferenceData(EricaError, LookupError):
    """
    The reference table has no entry for a value needed to fill a gap.

    Args:
        - quantity: Name of the looked up quantity (kd, cr, dcc, occ).
        - key: Tuple of the lookup keys.
        - reason: Optional explanation replacing the default message.
    """

    def __init__(self, quantity, key, reason=None):
        self.quantity = quantity
        self.key = tuple(key)
        if reason is None:
            reason = "no reference value of {} for {}".format(quantity, ", ".join(str(k) for k in self.key))
        self.reason = reason
        super().__init__(reason)

    def __str__(self):
        return self.reason


class InvalidParameterShape(EricaError, ValueError):
    """
    A parameter array has the wrong length or holds values outside its domain.
    """
