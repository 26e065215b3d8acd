# barber_series/errors.py


class SeriesEngineError(Exception):
    """Base class for failures raised by the series engine."""


class ConfigurationError(SeriesEngineError):
    """A required setting (e.g. the cron secret) is missing."""


class SeriesLoadError(SeriesEngineError):
    """The set of active series could not be read; the run is aborted."""


class SeriesNotFoundError(SeriesEngineError):
    """A series vanished between loading the active set and extending it."""

    def __init__(self, series_id):
        super().__init__(f"series {series_id}: no longer exists")


class MalformedSeriesError(SeriesEngineError):
    """A series row is missing fields the generator needs."""

    def __init__(self, series_id, message: str):
        super().__init__(f"series {series_id}: {message}")
        self.series_id = series_id


class InvalidDateError(SeriesEngineError, ValueError):
    """A calendar date string could not be parsed."""
