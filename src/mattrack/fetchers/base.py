"""
Base fetcher class and common data structures.

Every federation client (JJWL, IBJJF) implements BaseGymFetcher. The
sync services only ever talk to this contract, so the concrete HTTP or
browser clients can change without touching the matching logic.

Fetchers own their own timeouts and retries; the sync services call each
method once and treat any exception as a failed run or a failed pair.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

ProgressCallback = Callable[[int, int], None]


@dataclass
class FetchedGym:
    """
    Standardized gym record from any federation.

    Normalizes the federation payloads into a common shape for upserting
    into source_gyms.
    """
    federation: str  # 'JJWL' or 'IBJJF'
    external_id: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None

    def __repr__(self) -> str:
        return f"<FetchedGym({self.federation}#{self.external_id}, '{self.name}')>"


@dataclass
class RosterAthlete:
    """One athlete entry from a gym's tournament roster."""
    name: str
    gender: str = ""
    age_division: str = ""
    belt: str = ""
    weight: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "gender": self.gender,
            "age_division": self.age_division,
            "belt": self.belt,
            "weight": self.weight,
        }


class BaseGymFetcher(ABC):
    """
    Abstract client for one federation's gym and roster endpoints.

    Subclasses set `federation` and implement every abstract method.
    Capability flags tell callers which optional endpoints exist:
    fetch_total_count() is only called when supports_total_count is
    True, fetch_roster() only when supports_rosters is True.
    """

    federation: str = ""
    supports_total_count: bool = False
    supports_rosters: bool = False

    @abstractmethod
    async def fetch_all_gyms(
        self,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[FetchedGym]:
        """
        Fetch the complete current gym list.

        Args:
            on_progress: Optional callback called with (fetched, total)
                         as pages come in

        Returns:
            All gyms the federation currently publishes
        """

    @abstractmethod
    async def fetch_total_count(self) -> int:
        """Fetch only the remote total gym count (cheap change check)."""

    @abstractmethod
    async def fetch_roster(
        self,
        tournament_id: str,
        gym_external_id: str,
    ) -> list[RosterAthlete]:
        """Fetch the athletes a gym has entered at a tournament."""
