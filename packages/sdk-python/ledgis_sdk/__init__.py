"""LEDGIS Python SDK."""

__version__ = "0.1.0"

from ledgis_sdk.client import ApiError, DownloadResponse, LedgisClient, sanitise_file_name

__all__ = ["ApiError", "DownloadResponse", "LedgisClient", "sanitise_file_name"]
