"""Console front-ends for browsing stored uploads."""

from .modern import StorageOverviewUI

__all__ = ["StorageOverviewUI"]
