"""
Command line front-end for the tournament meta engine.

Usage:
    tourney-meta import results.csv --format A --event "LVO 2025" --date 2025-01-24 --window 2025-Q1
    tourney-meta recompute [--reset]
    tourney-meta link <glicko-id> <user-id>
    tourney-meta factions [--window W] [--min-games N]
    tourney-meta windows
    tourney-meta leaderboard [--limit N] [--min-games N]
"""

import argparse
import asyncio
import sys

from meta_engine.config import Config
from meta_engine.database import Database
from meta_engine.operations import ImportOperations, PlayerOperations, RecomputeOperations
from meta_engine.services import MetaService, PlayerService
from meta_engine.utils.exceptions import MetaEngineError
from meta_engine.utils.glicko2 import Glicko2Calculator
from meta_engine.utils.logger import setup_logger

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tourney-meta', description='Tournament results ingestion and Glicko-2 ratings')
    parser.add_argument('--database-url', help='Overrides DATABASE_URL')
    commands = parser.add_subparsers(dest='command', required=True)
    
    import_cmd = commands.add_parser('import', help='Import a tournament results CSV')
    import_cmd.add_argument('csv_file', help='Path to the export')
    import_cmd.add_argument('--format', required=True, help='A (BCP), B (Tabletop Admiral) or C (generic)')
    import_cmd.add_argument('--event', required=True, help='Event name')
    import_cmd.add_argument('--date', required=True, help='Event date, YYYY-MM-DD')
    import_cmd.add_argument('--window', required=True, help='Meta window label, e.g. 2025-Q2')
    import_cmd.add_argument('--event-format', help='League/format tag (default GT)')
    import_cmd.add_argument('--by', dest='imported_by', help='Importer identity')
    
    recompute_cmd = commands.add_parser('recompute', help='Replay every import to rebuild ratings')
    recompute_cmd.add_argument('--reset', action='store_true', help='Reset ratings and history before replaying')
    recompute_cmd.add_argument('--from-import', dest='from_import_id', help='Accepted but ignored')
    
    link_cmd = commands.add_parser('link', help='Link a rated player to a platform account')
    link_cmd.add_argument('glicko_id')
    link_cmd.add_argument('user_id')
    
    factions_cmd = commands.add_parser('factions', help='Faction win rates')
    factions_cmd.add_argument('--window', help='Meta window filter')
    factions_cmd.add_argument('--format', help='Source format filter')
    factions_cmd.add_argument('--min-games', type=int, default=None)
    
    commands.add_parser('windows', help='List meta windows')
    
    leaderboard_cmd = commands.add_parser('leaderboard', help='Glicko-2 leaderboard')
    leaderboard_cmd.add_argument('--limit', type=int, default=None)
    leaderboard_cmd.add_argument('--min-games', type=int, default=None)
    
    return parser


async def run(args) -> int:
    db = Database(args.database_url)
    await db.initialize()
    
    try:
        if args.command == 'import':
            with open(args.csv_file, encoding='utf-8-sig') as handle:
                csv_text = handle.read()
            result = await ImportOperations(db).import_tournament(
                csv_text, args.format, args.event, args.date, args.window,
                imported_by=args.imported_by, event_format=args.event_format,
            )
            print(f"Import {result.import_id}: {result.records} event(s), {result.imported} entries, "
                  f"{result.players_updated} rated, {result.skipped} without games")
        
        elif args.command == 'recompute':
            result = await RecomputeOperations(db).recompute_all(reset=args.reset, from_import_id=args.from_import_id)
            print(f"Replayed {result.imports_replayed} import(s) ({result.imports_skipped} skipped), "
                  f"{result.players_updated} entries rated")
        
        elif args.command == 'link':
            player = await PlayerOperations(db).link_player(args.glicko_id, args.user_id)
            print(f"Linked '{player.player_name}' to {player.user_id}")
        
        elif args.command == 'factions':
            stats = await MetaService(db.session_factory).factions(args.window, args.format, args.min_games)
            for stat in stats:
                print(f"{stat.faction:<32} {stat.win_rate:6.1%}  {stat.games:>5} games  {stat.representation_pct:6.1%} of field")
        
        elif args.command == 'windows':
            for window in await MetaService(db.session_factory).windows():
                print(window)
        
        elif args.command == 'leaderboard':
            players = PlayerService(db.session_factory)
            for entry in await players.leaderboard(args.limit, args.min_games):
                profile = await players.profile(entry.player_id)
                last = profile.history[0].delta if profile and profile.history else 0.0
                print(f"{entry.rank:>3}. {entry.player_name:<32} {entry.display_rating} ± {entry.display_band:<4} "
                      f"({Glicko2Calculator.format_rating_change(last)}, {entry.games_played} games)")
        
        return 0
    except MetaEngineError as e:
        logger.error(str(e))
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 1
    finally:
        await db.close()


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    Config.validate()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
