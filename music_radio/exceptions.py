"""
Exception types raised by the music radio core.
"""


class MusicRadioError(Exception):
    """Base class for music radio errors."""


class StoreNotInitializedError(MusicRadioError):
    """Raised when the library store is used before it has been opened."""

    def __init__(self, message: str = "Database not initialized"):
        super().__init__(message)


class StationNotFoundError(MusicRadioError):
    """Raised when a station id does not exist in the store."""

    def __init__(self, station_id: str):
        self.station_id = station_id
        super().__init__(f"Station not found: {station_id}")


class SearchCancelledError(MusicRadioError):
    """Raised inside a search that has been superseded by a newer one."""


class StationExistsError(MusicRadioError):
    """Raised when creating a station whose name is already taken."""

    def __init__(self, station_id: str, name: str):
        self.station_id = station_id
        self.name = name
        super().__init__(f"Station already exists: {name} ({station_id})")
