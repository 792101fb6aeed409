"""
Tests for the read-side services and player linking.
"""

import json

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from meta_engine.database.models import TournamentImport
from meta_engine.operations import ImportOperations, PlayerOperations
from meta_engine.services import MetaService, PlayerService, SourceService
from meta_engine.utils.exceptions import (
    DatabaseError, ImportNotFoundError, PlayerNotFoundError, UserNotFoundError
)

META_CSV = """Place,Player Name,Faction,Detachment,W,L,D,Total Points,List
1,Alice,Aeldari,Warhost,5,0,0,100,Aeldari list
2,Bob,Orks,Waaagh! Tribe,3,1,0,80,Ork list
3,Carol,Necrons,,2,2,0,60,
4,Dave,Orks,Waaagh! Tribe,1,3,1,40,
"""

LONG_CSV = """Place,Player Name,Faction,W,L,D,Total Points
1,Alice,Aeldari,8,2,0,100
2,Bob,Orks,6,4,0,80
3,Erin,Tyranids,5,5,0,70
"""


@pytest.fixture
def meta(db):
    return MetaService(db.session_factory)


async def import_meta(db):
    return await ImportOperations(db).import_tournament(META_CSV, "A", "Spring GT", "2025-04-12", "2025-Q2")


class TestMetaService:
    @pytest.mark.asyncio
    async def test_factions_default_min_games(self, db, meta):
        await import_meta(db)
        
        stats = await meta.factions()
        
        # Necrons played 4 games and fall under the default threshold of 5
        assert [s.faction for s in stats] == ["Aeldari", "Orks"]
        assert stats == await meta.factions()
        assert [s.faction for s in await meta.factions(min_games=0)] == ["Aeldari", "Orks", "Necrons"]
    
    @pytest.mark.asyncio
    async def test_filters_by_window_and_format(self, db, meta):
        await import_meta(db)
        await ImportOperations(db).import_tournament(LONG_CSV, "A", "Summer GT", "2025-07-05", "2025-Q3")
        
        q3 = await meta.factions(meta_window="2025-Q3", min_games=0)
        assert [s.faction for s in q3] == ["Aeldari", "Orks", "Tyranids"]
        assert await meta.factions(format="bcp-csv", min_games=0) == await meta.factions(min_games=0)
        assert await meta.factions(format="C", min_games=0) == []
        assert await meta.windows() == ["2025-Q2", "2025-Q3"]
    
    @pytest.mark.asyncio
    async def test_faction_detail(self, db, meta):
        await import_meta(db)
        
        detail = await meta.faction("Orks")
        assert detail.stat.games == 9
        assert [d.detachment for d in detail.detachments] == ["Waaagh! Tribe"]
        assert [p.bucket for p in detail.timeline] == ["2025-04-07"]
        assert [l.player_name for l in detail.top_lists] == ["Bob"]
        
        missing = await meta.faction("Votann")
        assert missing.stat is None
        assert missing.detachments == [] and missing.top_lists == []
    
    @pytest.mark.asyncio
    async def test_detachments_matchups_lists_timeline(self, db, meta):
        await import_meta(db)
        
        assert [(d.faction, d.detachment) for d in await meta.detachments()] == [
            ("Aeldari", "Warhost"), ("Orks", "Waaagh! Tribe")
        ]
        assert [d.faction for d in await meta.detachments(faction="Orks")] == ["Orks"]
        
        cells = await meta.matchups(min_games=1)
        assert [(c.faction_a, c.faction_b) for c in cells] == [
            ("Aeldari", "Necrons"), ("Aeldari", "Orks"), ("Necrons", "Orks")
        ]
        assert await meta.matchups() == []
        
        assert [l.player_name for l in await meta.lists()] == ["Alice", "Bob"]
        assert [l.player_name for l in await meta.lists(limit=0)] == ["Alice"]
        assert len(await meta.timeline()) == 3
    
    @pytest.mark.asyncio
    async def test_corrupt_payloads_are_skipped(self, db, meta):
        await import_meta(db)
        second = await ImportOperations(db).import_tournament(LONG_CSV, "A", "Summer GT", "2025-07-05", "2025-Q2")
        async with db.transaction() as session:
            await session.execute(
                update(TournamentImport).where(TournamentImport.id == second.import_id).values(parsed_data="oops")
            )
        
        records = await meta.load_records()
        assert [r.event_name for r in records] == ["Spring GT"]


class TestPlayerService:
    @pytest.mark.asyncio
    async def test_leaderboard_respects_min_games(self, db):
        ops = ImportOperations(db)
        await import_meta(db)
        await ops.import_tournament(LONG_CSV, "A", "Summer GT", "2025-07-05", "2025-Q3")
        players = PlayerService(db.session_factory)
        
        board = await players.leaderboard()
        assert [e.player_name for e in board] == ["Alice", "Bob", "Erin"]
        assert [e.rank for e in board] == [1, 2, 3]
        assert board[0].display_rating == round(board[0].rating)
        assert board[0].display_band == round(2 * board[0].rating_deviation)
        
        assert [e.player_name for e in await players.leaderboard(limit=1, min_games=0)] == ["Alice"]
        assert len(await players.leaderboard(min_games=0)) == 5
    
    @pytest.mark.asyncio
    async def test_profile_and_search(self, db):
        await import_meta(db)
        players = PlayerService(db.session_factory)
        bob = (await players.search("bo"))[0]
        
        profile = await players.profile(bob.player_id)
        assert profile.entry.player_name == "Bob"
        assert len(profile.history) == 1
        assert profile.history[0].games_in_period == 4
        assert profile.last_rating_period == profile.history[0].rating_period
        
        assert await players.profile("missing") is None
        assert await players.search("") == []
        assert {e.player_name for e in await players.search("A")} == {"Alice", "Carol", "Dave"}


class TestLinkPlayer:
    @pytest.mark.asyncio
    async def test_link_and_relink(self, db):
        await import_meta(db)
        carol = await db.get_glicko_player_by_name("Carol")
        first = await db.create_platform_user("carol_k")
        second = await db.create_platform_user("ck")
        ops = PlayerOperations(db)
        
        linked = await ops.link_player(carol.id, first.id)
        assert linked.user_id == first.id
        await ops.link_player(carol.id, second.id)
        assert (await db.get_glicko_player(carol.id)).user_id == second.id
    
    @pytest.mark.asyncio
    async def test_unknown_ids_raise(self, db):
        await import_meta(db)
        carol = await db.get_glicko_player_by_name("Carol")
        user = await db.create_platform_user("carol_k")
        ops = PlayerOperations(db)
        
        with pytest.raises(PlayerNotFoundError):
            await ops.link_player("nope", user.id)
        with pytest.raises(UserNotFoundError):
            await ops.link_player(carol.id, "nope")
        assert (await db.get_glicko_player(carol.id)).user_id is None
    
    @pytest.mark.asyncio
    async def test_commit_failure_is_wrapped(self, db, monkeypatch):
        await import_meta(db)
        carol = await db.get_glicko_player_by_name("Carol")
        user = await db.create_platform_user("carol_k")
        
        async def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        
        monkeypatch.setattr(AsyncSession, "commit", failing_commit)
        with pytest.raises(DatabaseError):
            await PlayerOperations(db).link_player(carol.id, user.id)
        monkeypatch.undo()
        
        assert (await db.get_glicko_player(carol.id)).user_id is None


class TestSourceService:
    @pytest.mark.asyncio
    async def test_tournaments_newest_first(self, db):
        ops = ImportOperations(db)
        spring = await import_meta(db)
        summer = await ops.import_tournament(LONG_CSV, "A", "Summer GT", "2025-07-05", "2025-Q3")
        source = SourceService(db.session_factory)
        
        listing = await source.tournaments()
        assert [t.import_id for t in listing] == [summer.import_id, spring.import_id]
        assert [t.player_count for t in listing] == [3, 4]
        assert [t.import_id for t in await source.tournaments(before="2025-06-30")] == [spring.import_id]
        assert [t.import_id for t in await source.tournaments(after="2025-06-30")] == [summer.import_id]
        assert await source.tournaments(format="B") == []
    
    @pytest.mark.asyncio
    async def test_tournament_detail_and_download(self, db):
        result = await import_meta(db)
        source = SourceService(db.session_factory)
        
        detail = await source.tournament(result.import_id)
        assert detail.summary.event_name == "Spring GT"
        assert [e.player.player_name for e in detail.entries] == ["Alice", "Bob", "Carol", "Dave"]
        
        assert await source.download(result.import_id, "csv") == META_CSV
        payload = await source.download(result.import_id, "json")
        assert json.loads(payload)[0]["event_name"] == "Spring GT"
        assert "\n  " in payload
    
    @pytest.mark.asyncio
    async def test_unknown_import(self, db):
        source = SourceService(db.session_factory)
        with pytest.raises(ImportNotFoundError):
            await source.tournament("missing")
        with pytest.raises(ImportNotFoundError):
            await source.download("missing", "csv")
        with pytest.raises(ValueError):
            await source.download("missing", "xml")
