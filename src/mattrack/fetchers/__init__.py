"""
Federation fetcher contract.

The concrete website clients for JJWL and IBJJF live outside this
package; they implement BaseGymFetcher and hand back FetchedGym and
RosterAthlete records.
"""

from mattrack.fetchers.base import BaseGymFetcher, FetchedGym, ProgressCallback, RosterAthlete

__all__ = [
    "BaseGymFetcher",
    "FetchedGym",
    "ProgressCallback",
    "RosterAthlete",
]
