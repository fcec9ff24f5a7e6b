#!/usr/bin/env python3
"""
Run script for the procurement core

    python app.py                  build tables, load debug data, serve the API
    python app.py --no-debug-data  build tables and serve
    python app.py --build-only     build tables and exit
    python app.py --dispatch       build, run one dispatch pass, print it as JSON
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from app import create_app  # noqa: E402
from app.build import build_database  # noqa: E402
from app.logger import get_logger  # noqa: E402

logger = get_logger("procurement.run")


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Maintenance procurement core')
    parser.add_argument('--build-only', action='store_true',
                        help='Create the tables and exit (no debug data, no server)')
    parser.add_argument('--enable-debug-data', action='store_true', default=True,
                        help='Load app/debug/data/procurement.json (default)')
    parser.add_argument('--no-debug-data', action='store_false', dest='enable_debug_data',
                        help='Skip debug data')
    parser.add_argument('--dispatch', action='store_true',
                        help='Run one dispatch pass, print the summary as JSON and exit')
    return parser.parse_args(argv)


def run_dispatch(app):
    """Exit status is 1 when any bucket failed"""
    from app.buisness.procurement.dispatch_engine import DispatchEngine
    from app.presentation.routes.procurement.serializers import dispatch_response

    with app.app_context():
        result = DispatchEngine().run()
    print(json.dumps(dispatch_response(result), indent=2))
    return 1 if result.errors else 0


def _flag(name):
    return os.environ.get(name, 'False').lower() in ('true', '1', 'yes', 'on')


def serve(app):
    debug_mode = _flag('FLASK_DEBUG')
    use_reloader = _flag('USE_RELOADER')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("Debug mode enabled; never expose this server")
    logger.info(f"Serving on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)


def main(argv=None):
    args = parse_arguments(argv)
    app = create_app()

    build_database(enable_debug_data=args.enable_debug_data and not args.build_only, app=app)

    if args.build_only:
        logger.info("Build finished")
        return 0
    if args.dispatch:
        return run_dispatch(app)

    serve(app)
    return 0


if __name__ == '__main__':
    sys.exit(main())
