"""Exception types raised by the itinerary engine."""


class ItineraryEngineError(Exception):
    """Base class for engine errors."""

    pass


class ItineraryStructureError(ItineraryEngineError, ValueError):
    """The caller supplied a structurally invalid itinerary.

    Examples: an itinerary with zero days, entry points referencing a day
    that does not exist, or a day with duplicate activity ids. Routes map this
    to HTTP 400.
    """

    pass


class TravelEstimateError(ItineraryEngineError):
    """The travel-time estimator could not produce an estimate."""

    pass
