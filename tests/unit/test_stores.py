"""
Unit tests for the database-backed stores.
"""

from datetime import date, timedelta

from conftest import add_source_gym, make_record
from mattrack.config import settings
from mattrack.db.models import (
    Athlete,
    Tournament,
    TournamentRef,
    UserProfile,
    WishlistItem,
    build_pair_key,
    parse_source_key,
)
from mattrack.db.stores import (
    AthleteStore,
    GymRosterStore,
    GymStore,
    MasterGymStore,
    PendingMatchStore,
    TournamentStore,
    UserProfileStore,
    WishlistStore,
)
from mattrack.fetchers.base import FetchedGym, RosterAthlete

TODAY = date(2026, 10, 19)


def _tournament(db_session, federation, external_id, days_out):
    tournament = Tournament(
        federation=federation,
        external_id=external_id,
        name=f"{federation} Open {external_id}",
        start_date=TODAY + timedelta(days=days_out),
    )
    db_session.add(tournament)
    db_session.commit()
    return tournament


class TestSourceKeys:

    def test_parse_source_key(self):
        assert parse_source_key("JJWL#5713") == ("JJWL", "5713")
        assert parse_source_key("IBJJF#abc") == ("IBJJF", "abc")
        assert parse_source_key("JJWL") is None
        assert parse_source_key("JJWL#") is None
        assert parse_source_key("UFC#1") is None

    def test_pair_key_is_order_independent(self):
        assert build_pair_key("JJWL#1", "IBJJF#2") == build_pair_key("IBJJF#2", "JJWL#1")


class TestGymStore:

    def test_upsert_keeps_master_link(self, db_session):
        store = GymStore(db_session)
        master = MasterGymStore(db_session).create_master_gym("Gracie Barra Austin")
        store.upsert_gym(FetchedGym("JJWL", "1", "Gracie Barra Austin "))
        MasterGymStore(db_session).link_source_gym("JJWL", "1", master.id)

        store.upsert_gym(FetchedGym("JJWL", "1", "Gracie Barra - Austin", city="Austin"))

        gym = store.get_source_gym("JJWL", "1")
        assert gym.name == "Gracie Barra - Austin"
        assert gym.city == "Austin"
        assert gym.master_gym_id == master.id

    def test_batch_upsert_counts_and_handles_repeats(self, db_session):
        store = GymStore(db_session)
        saved = store.batch_upsert_gyms([
            FetchedGym("JJWL", "1", "Alpha #1 BJJ"),
            FetchedGym("JJWL", "2", "Beta"),
            FetchedGym("JJWL", "1", "Alpha BJJ"),
        ])

        assert saved == 3
        assert len(store.list_all_gyms("JJWL")) == 2
        assert store.get_source_gym("JJWL", "1").name == "Alpha BJJ"

    def test_name_sanitized(self, db_session):
        store = GymStore(db_session)
        store.upsert_gym(FetchedGym("JJWL", "1", "  Team #1 Academy "))
        assert store.get_source_gym("JJWL", "1").name == "Team 1 Academy"

    def test_pagination(self, db_session, monkeypatch):
        store = GymStore(db_session)
        store.batch_upsert_gyms([FetchedGym("IBJJF", str(i), f"Gym {i}") for i in range(5)])
        store.upsert_gym(FetchedGym("JJWL", "x", "Other"))

        page1, cursor = store.list_gyms("IBJJF", limit=2)
        page2, cursor2 = store.list_gyms("IBJJF", limit=2, cursor=cursor)
        page3, cursor3 = store.list_gyms("IBJJF", limit=2, cursor=cursor2)

        assert [g.external_id for g in page1 + page2 + page3] == ["0", "1", "2", "3", "4"]
        assert cursor3 is None

        monkeypatch.setattr(settings, "gym_page_size", 2)
        assert len(store.list_all_gyms("IBJJF")) == 5

    def test_us_ibjjf_snapshot(self, db_session):
        store = GymStore(db_session)
        store.batch_upsert_gyms([
            FetchedGym("IBJJF", "1", "Austin Gym", country_code="US"),
            FetchedGym("IBJJF", "2", "Dallas Gym", country="United States"),
            FetchedGym("IBJJF", "3", "Rio Gym", country="Brazil", country_code="BR"),
            FetchedGym("JJWL", "4", "Houston Gym", country_code="US"),
        ])

        snapshot = store.list_us_ibjjf_gyms()

        assert isinstance(snapshot, tuple)
        assert [g.external_id for g in snapshot] == ["1", "2"]

    def test_sync_meta_change_tracking(self, db_session):
        store = GymStore(db_session)
        assert store.get_sync_meta("IBJJF") is None

        first = store.update_sync_meta("IBJJF", 100)
        first_change = first.last_change_at

        same = store.update_sync_meta("IBJJF", 100)
        assert same.last_change_at == first_change
        assert same.total_records == 100

        changed = store.update_sync_meta("IBJJF", 120)
        assert changed.total_records == 120
        assert changed.last_change_at >= first_change

    def test_list_by_master_gym_id(self, db_session):
        master = MasterGymStore(db_session).create_master_gym("Checkmat")
        add_source_gym(db_session, make_record("JJWL", "1", "Checkmat", master_gym_id=master.id))
        add_source_gym(db_session, make_record("IBJJF", "2", "Checkmat", master_gym_id=master.id))
        add_source_gym(db_session, make_record("IBJJF", "3", "Atos"))

        gyms = GymStore(db_session).list_by_master_gym_id(master.id)

        assert {g.source_key for g in gyms} == {"JJWL#1", "IBJJF#2"}


class TestMasterGymStore:

    def test_search_by_prefix(self, db_session):
        store = MasterGymStore(db_session)
        store.create_master_gym("Gracie Barra Austin")
        store.create_master_gym("Gracie Humaita")
        store.create_master_gym("Alliance")

        names = [m.canonical_name for m in store.search_master_gyms("GRACIE")]

        assert names == ["Gracie Barra Austin", "Gracie Humaita"]

    def test_link_missing_gym_is_ignored(self, db_session):
        store = MasterGymStore(db_session)
        master = store.create_master_gym("Alliance")
        store.link_source_gym("JJWL", "missing", master.id)
        assert GymStore(db_session).get_source_gym("JJWL", "missing") is None


class TestPendingMatchStore:

    def test_find_existing_either_order(self, db_session):
        store = PendingMatchStore(db_session)
        created = store.create_pending_match("JJWL#1", "A", "IBJJF#2", "B", 80.0, {})

        assert store.find_existing_pending_match("JJWL#1", "IBJJF#2").id == created.id
        assert store.find_existing_pending_match("IBJJF#2", "JJWL#1").id == created.id
        assert store.find_existing_pending_match("JJWL#1", "IBJJF#2", status="approved") is None

    def test_update_status(self, db_session):
        store = PendingMatchStore(db_session)
        created = store.create_pending_match("JJWL#1", "A", "IBJJF#2", "B", 80.0, {})

        store.update_status(created.id, "rejected", "alice")

        assert store.find_existing_pending_match("JJWL#1", "IBJJF#2") is None
        assert store.list_pending_matches("rejected")[0].reviewed_by == "alice"


class TestTournamentAndUserStores:

    def test_query_tournaments_window_paginated(self, db_session):
        for i, days_out in enumerate([-1, 0, 10, 30, 61]):
            _tournament(db_session, "JJWL", str(i), days_out)

        store = TournamentStore(db_session)
        page, cursor = store.query_tournaments(TODAY, TODAY + timedelta(days=60), limit=2)
        rest, end = store.query_tournaments(TODAY, TODAY + timedelta(days=60), limit=2, cursor=cursor)

        assert [t.external_id for t in page + rest] == ["1", "2", "3"]
        assert end is None

    def test_wishlisted_tournaments_distinct_in_window(self, db_session):
        soon = _tournament(db_session, "JJWL", "850", 5)
        later = _tournament(db_session, "IBJJF", "77", 90)
        db_session.add_all([
            WishlistItem(user_id="u1", tournament_id=soon.id),
            WishlistItem(user_id="u2", tournament_id=soon.id),
            WishlistItem(user_id="u1", tournament_id=later.id),
        ])
        db_session.commit()

        refs = WishlistStore(db_session).list_wishlisted_tournaments(60, today=TODAY)

        assert refs == [TournamentRef("JJWL", "850")]

    def test_athletes_and_profiles(self, db_session):
        master = MasterGymStore(db_session).create_master_gym("Atos")
        db_session.add_all([
            Athlete(user_id="u1", name="Kid A", gym_source_id="JJWL#5713"),
            Athlete(user_id="u1", name="Kid B"),
            UserProfile(user_id="u1", master_gym_id=master.id),
            UserProfile(user_id="u2", master_gym_id=master.id),
            UserProfile(user_id="u3"),
        ])
        db_session.commit()

        athletes = AthleteStore(db_session).list_athletes_with_gyms()

        assert [a.name for a in athletes] == ["Kid A"]
        assert UserProfileStore(db_session).list_master_gym_ids() == [master.id]


class TestGymRosterStore:

    def test_upsert_roster_replaces_athletes(self, db_session):
        store = GymRosterStore(db_session)
        store.upsert_roster("JJWL", "850", "5713", "Pablo Silva BJJ", [RosterAthlete("Kid A")])
        store.upsert_roster(
            "JJWL", "850", "5713", "Pablo Silva BJJ",
            [RosterAthlete("Kid A", belt="grey"), RosterAthlete("Kid B")],
        )

        roster = store.get_roster("JJWL", "850", "5713")

        assert roster.athlete_count == 2
        assert roster.athletes[0]["belt"] == "grey"
        assert len(store.list_tournament_rosters("JJWL", "850")) == 1
