"""CLI utility to print the ladder standings or bootstrap the admin player."""

import argparse
import json

from latter.app import create_app
from latter.services.players import bootstrap_admin, standings


def _build_parser():
    parser = argparse.ArgumentParser(
        description='Print the current ladder standings as JSON.',
    )
    parser.add_argument(
        '--env',
        default='development',
        choices=['development', 'testing', 'production'],
        help='App config environment to use (default: development).',
    )
    parser.add_argument(
        '--setup',
        action='store_true',
        help='Create the Admin player first if the ladder is empty.',
    )
    parser.add_argument(
        '--limit',
        type=int,
        default=0,
        help='Only print the top N rows (default: all).',
    )
    return parser


def main(argv=None):
    args = _build_parser().parse_args(argv)
    app = create_app(args.env)

    with app.app_context():
        result = {}
        if args.setup:
            admin = bootstrap_admin()
            result['admin_created'] = admin is not None
        rows = standings()
        if args.limit > 0:
            rows = rows[:args.limit]
        result['standings'] = rows
        print(json.dumps(result, indent=2))
        return 0


if __name__ == '__main__':
    raise SystemExit(main())
