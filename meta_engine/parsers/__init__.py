"""
Tournament CSV parsers.

A single entry point for parsing tournament result exports in any
supported dialect: Format A (BCP-style), Format B (Tabletop Admiral-style)
and Format C (generic, self-described).
"""

from typing import List, Optional

from meta_engine.constants import ImportConstants
from meta_engine.data_models.tournament import TournamentRecord
from meta_engine.parsers.base import ParseHints, TournamentParser
from meta_engine.parsers.bcp import BcpParser, parse_bcp_csv
from meta_engine.parsers.generic import GenericParser, parse_generic_csv
from meta_engine.parsers.tabletop_admiral import TabletopAdmiralParser, parse_tabletop_admiral_csv
from meta_engine.utils.exceptions import UnknownFormatError

PARSERS = {
    ImportConstants.FORMAT_BCP: BcpParser,
    ImportConstants.FORMAT_TABLETOP_ADMIRAL: TabletopAdmiralParser,
    ImportConstants.FORMAT_GENERIC: GenericParser,
}


def normalize_format(format_id: str) -> str:
    """
    Resolve a format id or alias to its canonical id.
    
    Raises:
        UnknownFormatError: If the format is not supported
    """
    canonical = ImportConstants.FORMAT_ALIASES.get((format_id or '').strip().lower())
    if canonical is None:
        raise UnknownFormatError(format_id)
    return canonical


def get_parser(format_id: str) -> TournamentParser:
    """Get the parser for a format id or alias"""
    return PARSERS[normalize_format(format_id)]()


def parse_tournament_csv(
    raw_text: str,
    format_id: str,
    hints: Optional[ParseHints] = None
) -> List[TournamentRecord]:
    """Parse raw CSV text in the given format into tournament records"""
    return get_parser(format_id).parse(raw_text, hints)


__all__ = [
    'ParseHints', 'TournamentParser',
    'BcpParser', 'TabletopAdmiralParser', 'GenericParser',
    'parse_bcp_csv', 'parse_tabletop_admiral_csv', 'parse_generic_csv',
    'normalize_format', 'get_parser', 'parse_tournament_csv',
]
