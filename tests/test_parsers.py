"""
Tests for the Format A, B and C tournament CSV parsers.
"""

import pytest

from meta_engine.parsers import (
    BcpParser, GenericParser, ParseHints, TabletopAdmiralParser,
    get_parser, normalize_format, parse_tournament_csv
)
from meta_engine.utils.exceptions import UnknownFormatError

HINTS = ParseHints(event_name="Spring GT", event_date="2025-04-12")


class TestFormatA:
    def test_parses_standings(self):
        raw = "Place,Player Name,Faction,W,L,D,Total Points\n1,Alice,Aeldari,5,0,0,100\n2,Bob,Orks,4,1,0,90.5\n"
        records = BcpParser().parse(raw, HINTS)
        
        assert len(records) == 1
        record = records[0]
        assert record.event_name == "Spring GT"
        assert record.event_date == "2025-04-12"
        assert record.format == "GT"
        assert [p.player_name for p in record.players] == ["Alice", "Bob"]
        assert record.players[1].points == 90.5
        assert record.players[0].wins == 5
    
    def test_rank_and_cp_aliases(self):
        raw = "Rank,Player,Faction,Win,Loss,Draw,CP\n1,Alice,Aeldari,4,0,1,120\n"
        player = BcpParser().parse(raw, HINTS)[0].players[0]
        
        assert player.placement == 1
        assert player.draws == 1
        assert player.points == 120
    
    def test_non_numeric_placement_is_skipped(self):
        raw = "Place,Player Name,Faction,W,L,D,Total Points\nDNF,Zed,Orks,0,0,0,0\n2,Bob,Orks,4,1,0,90\n"
        players = BcpParser().parse(raw, HINTS)[0].players
        
        assert [p.player_name for p in players] == ["Bob"]
    
    def test_multiline_list_and_detachment_extraction(self):
        raw = (
            'Place,Player Name,Faction,W,L,D,Total Points,List\n'
            '1,Alice,Space Marines,5,0,0,100,"Alice\'s list\n+ DETACHMENT: Gladius Task Force\nCaptain"\n'
        )
        player = BcpParser().parse(raw, HINTS)[0].players[0]
        
        assert "Captain" in player.list_text
        assert player.detachment == "Gladius Task Force"
    
    def test_missing_hints_yield_nothing(self):
        raw = "Place,Player Name,Faction,W,L,D,Total Points\n1,Alice,Aeldari,5,0,0,100\n"
        assert BcpParser().parse(raw) == []
        assert BcpParser().parse(raw, ParseHints(event_name="Spring GT")) == []
    
    def test_bom_header(self):
        raw = "\ufeffPlace,Player Name,Faction,W,L,D,Total Points\n1,Alice,Aeldari,5,0,0,100\n"
        assert BcpParser().parse(raw, HINTS)[0].players[0].placement == 1
    
    def test_negative_counts_drop_the_row(self):
        raw = "Place,Player Name,Faction,W,L,D,Total Points\n1,Alice,Aeldari,-1,0,0,100\n"
        assert BcpParser().parse(raw, HINTS) == []
    
    def test_unreadable_counts_drop_the_row(self):
        raw = (
            "Place,Player Name,Faction,W,L,D,Total Points\n"
            "1,Alice,Orks,five,x,?,10\n"
            "2,Bob,Necrons,3,,1,20\n"
        )
        records = BcpParser().parse(raw, HINTS)
        
        assert [(p.player_name, p.wins, p.losses, p.draws) for p in records[0].players] == [("Bob", 3, 0, 1)]


class TestFormatB:
    def test_groups_rows_by_event(self):
        raw = (
            "Event,Date,Rank,Player,Faction,Win,Loss,Draw,CP\n"
            "Spring GT,2025-04-12,1,Alice,Aeldari,5,0,0,100\n"
            "Autumn RTT,2025-09-20,1,Bob,Orks,3,0,0,60\n"
            "Spring GT,2025-04-12,2,Carol,Necrons,4,1,0,90\n"
        )
        records = TabletopAdmiralParser().parse(raw)
        
        assert [(r.event_name, len(r.players)) for r in records] == [("Spring GT", 2), ("Autumn RTT", 1)]
    
    def test_unit_rows_attach_to_preceding_player(self):
        raw = (
            "Event,Date,Rank,Player,Faction,Win,Loss,Draw,CP,Unit,Games Played,Avg Points\n"
            "Spring GT,2025-04-12,1,Alice,Aeldari,5,0,0,100,Wraithguard,5,210\n"
            ",,,,,,,,,Farseer,5,95\n"
            "Spring GT,2025-04-12,2,Bob,Orks,4,1,0,90,,,\n"
            ",,,,,,,,,Boyz,4,85.5\n"
        )
        players = TabletopAdmiralParser().parse(raw)[0].players
        
        assert [u.unit_name for u in players[0].unit_results] == ["Wraithguard", "Farseer"]
        assert [u.unit_name for u in players[1].unit_results] == ["Boyz"]
        assert players[1].unit_results[0].average_points == 85.5
    
    def test_rows_missing_event_or_date_are_dropped(self):
        raw = (
            "Event,Date,Rank,Player,Faction,Win,Loss,Draw,CP\n"
            ",2025-04-12,1,Alice,Aeldari,5,0,0,100\n"
            "Spring GT,,2,Bob,Orks,4,1,0,90\n"
        )
        assert TabletopAdmiralParser().parse(raw) == []
    
    def test_falls_back_to_hints_without_event_columns(self):
        raw = "Rank,Player,Faction,Win,Loss,Draw,CP\n1,Alice,Aeldari,5,0,0,100\n"
        records = TabletopAdmiralParser().parse(raw, HINTS)
        
        assert records[0].event_name == "Spring GT"


class TestFormatC:
    def test_ignores_hints_and_defaults_format(self):
        raw = (
            "event_name,event_date,placement,faction,wins,losses,draws,points\n"
            "Local RTT,2025-05-01,1,Orks,3,0,0,60\n"
        )
        records = GenericParser().parse(raw, HINTS)
        
        assert records[0].event_name == "Local RTT"
        assert records[0].format == "GT"
    
    def test_format_column_and_unit_rows(self):
        raw = (
            "event_name,event_date,format,placement,faction,player_name,wins,losses,draws,points,unit_name,unit_games_played,unit_avg_points\n"
            "Local RTT,2025-05-01,RTT,1,Orks,Dave,3,0,0,60,Boyz,3,80\n"
            "Local RTT,2025-05-01,RTT,1,Orks,Dave,3,0,0,60,Warboss,3,120\n"
            "Local RTT,2025-05-01,RTT,2,Aeldari,,2,1,0,40,,,\n"
        )
        record = GenericParser().parse(raw)[0]
        
        assert record.format == "RTT"
        assert len(record.players) == 2
        assert [u.unit_name for u in record.players[0].unit_results] == ["Boyz", "Warboss"]
        assert record.players[1].player_name is None
        assert record.players[1].identity_name == "[Aeldari@2]"


class TestDispatch:
    @pytest.mark.parametrize("raw", ["", "   \n", "Place,Player Name,Faction,W,L,D,Total Points\n"])
    @pytest.mark.parametrize("format_id", ["A", "B", "C"])
    def test_empty_or_header_only_input(self, raw, format_id):
        assert parse_tournament_csv(raw, format_id, HINTS) == []
    
    @pytest.mark.parametrize("format_id", ["A", "B", "C"])
    def test_garbage_never_raises(self, format_id):
        raw = 'x,"unterminated\n\x00,,,\n"""'
        assert isinstance(parse_tournament_csv(raw, format_id, HINTS), list)
    
    def test_format_aliases(self):
        assert normalize_format("bcp-csv") == "A"
        assert normalize_format("Tabletop-Admiral-CSV") == "B"
        assert normalize_format("c") == "C"
        assert isinstance(get_parser("generic"), GenericParser)
    
    def test_unknown_format(self):
        with pytest.raises(UnknownFormatError):
            normalize_format("D")
