#!/usr/bin/env python3
"""
Entry point for the NHRL Bracket View service.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, production or testing (default: development)
    PORT: Port to run on (default: 5000)
    TRUEFINALS_API_USER_ID / TRUEFINALS_API_KEY: TrueFinals credentials
    ENABLE_STATS_ANNOTATION: true or false (default: true)
    LOG_LEVEL: overrides the level set by FLASK_ENV
"""
import os
import logging


def run_bracket_view():
    """Run the bracket view service."""
    from bracketview.app import create_app

    app = create_app()
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', app.config['LOG_LEVEL']),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    port = int(os.getenv('PORT', 5000))
    debug = app.config.get('DEBUG', False)

    print(f"Starting Bracket View on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    run_bracket_view()
