"""
Main CLI entry point for the league player-allocation engine.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import config
from .exceptions import AllocationError, ValidationError
from .league_state import LeagueSnapshot
from .league.allocation_service import AllocationService
from .league.league_store import JsonFileLeagueStore
from .league.league_summary import calculate_competition_metrics


def setup_logging(verbose: bool = False):
    """
    Configure logging for the application.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='League Player Allocation Engine',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load a league document into the store
  python -m allocation.main --league-id L1 import league.json

  # Resolve every pending waiver claim
  python -m allocation.main --league-id L1 resolve-waivers

  # Run one auction action
  python -m allocation.main --league-id L1 auction start
  python -m allocation.main --league-id L1 auction nominate --team team_01 --player p42
  python -m allocation.main --league-id L1 auction bid --team team_02 --amount 15

  # Team summary and transaction export
  python -m allocation.main --league-id L1 summary
  python -m allocation.main --league-id L1 export transactions.csv

  # Serve the HTTP API
  python -m allocation.main serve --port 8000
        """
    )

    parser.add_argument(
        '--league-id',
        type=str,
        default=None,
        help='League identifier (required for every command except serve)'
    )

    parser.add_argument(
        '--store-dir',
        type=str,
        default=config.LEAGUE_STORE_DIR,
        help=f'Directory of league documents (default: {config.LEAGUE_STORE_DIR})'
    )

    parser.add_argument(
        '--log-dir',
        type=str,
        default=config.TRANSACTION_LOG_DIR,
        help=f'Directory of transaction logs (default: {config.TRANSACTION_LOG_DIR})'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    import_parser = commands.add_parser('import', help='Load a league JSON document into the store')
    import_parser.add_argument('file', type=str, help='Path to league JSON document')

    commands.add_parser('resolve-waivers', help='Resolve every pending waiver claim')

    auction_parser = commands.add_parser('auction', help='Run one playoff auction action')
    auction_parser.add_argument(
        'action',
        choices=['status', 'start', 'nominate', 'bid', 'pass', 'reset-bid', 'restart', 'settle'],
        help='Auction action'
    )
    auction_parser.add_argument('--team', type=str, default=None, help='Acting team_id')
    auction_parser.add_argument('--player', type=str, default=None, help='Player to nominate')
    auction_parser.add_argument('--amount', type=int, default=None, help='Bid amount')

    commands.add_parser('summary', help='Print the team budget/roster summary')

    export_parser = commands.add_parser('export', help='Export the transaction log to CSV')
    export_parser.add_argument(
        'output',
        type=str,
        nargs='?',
        default=None,
        help=f'CSV path (default: {config.EXPORT_DIR}/transactions_<league_id>.csv)'
    )

    serve_parser = commands.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', type=str, default=config.API_HOST)
    serve_parser.add_argument('--port', type=int, default=config.API_PORT)

    args = parser.parse_args(argv)
    if args.command != 'serve' and not args.league_id:
        parser.error('--league-id is required')
    return args


def run_auction_action(service: AllocationService, args) -> dict:
    """Dispatch one auction action and return the resulting status."""
    league_id = args.league_id

    if args.action in ('nominate', 'bid', 'pass') and not args.team:
        raise ValidationError(f"--team is required for {args.action}")

    if args.action == 'start':
        service.start_auction(league_id)
    elif args.action == 'nominate':
        if not args.player:
            raise ValidationError("--player is required for nominate")
        service.nominate(league_id, None, args.team, args.player)
    elif args.action == 'bid':
        if args.amount is None:
            raise ValidationError("--amount is required for bid")
        service.bid(league_id, None, args.team, args.amount)
    elif args.action == 'pass':
        service.pass_team(league_id, None, args.team)
    elif args.action == 'reset-bid':
        service.reset_bid(league_id)
    elif args.action == 'restart':
        service.restart_auction(league_id)
    elif args.action == 'settle':
        service.settle(league_id)

    return service.auction_status(league_id)


def main(argv=None):
    """Main execution function with command branching."""
    args = parse_arguments(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    if args.command == 'serve':
        import uvicorn
        from .league import api_dependencies

        api_dependencies.configure_service(AllocationService(
            JsonFileLeagueStore(Path(args.store_dir)),
            log_dir=Path(args.log_dir),
        ))
        uvicorn.run("allocation.league.api_server:app", host=args.host, port=args.port)
        return

    service = AllocationService(JsonFileLeagueStore(Path(args.store_dir)), log_dir=Path(args.log_dir))

    try:
        if args.command == 'import':
            with open(args.file, 'r', encoding='utf-8') as f:
                document = json.load(f)
            document.setdefault('league_id', args.league_id)
            snapshot = service.store.save(LeagueSnapshot.from_dict(document))
            logger.info(f"Imported league {snapshot.league_id} with {len(snapshot.teams)} teams")

        elif args.command == 'resolve-waivers':
            resolution = service.resolve_waivers(args.league_id)
            logger.info("=" * 60)
            logger.info(f"Waivers resolved for league {args.league_id}")
            logger.info("=" * 60)
            for result in resolution.results:
                outcome = 'WON' if result.success else f"LOST ({result.reason})"
                logger.info(
                    f"{result.team_id}: {result.claim.player_id} "
                    f"${result.claim.amount} → {outcome}"
                )
            logger.info(f"{len(resolution.winners)}/{len(resolution.results)} claims won")

        elif args.command == 'auction':
            status = run_auction_action(service, args)
            print(json.dumps(status, indent=2))

        elif args.command == 'summary':
            snapshot = service.get_snapshot(args.league_id)
            print(service.team_summary(args.league_id).to_string(index=False))
            totals = calculate_competition_metrics(snapshot)['league_totals']
            logger.info(f"League totals: {totals}")

        elif args.command == 'export':
            output = Path(args.output) if args.output else (
                Path(config.EXPORT_DIR) / f"transactions_{args.league_id}.csv"
            )
            rows = service.export_transactions(args.league_id, output)
            logger.info(f"Exported {rows} transactions to {output}")

    except AllocationError as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Error during execution: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
