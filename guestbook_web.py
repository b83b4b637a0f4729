#!/usr/bin/env python3
"""
Guestbook Web - Flask front end for the guestbook.
Serves the form, the guest list and the visit statistics as HTML pages.
"""

import argparse
import logging
import os
from typing import Dict, Optional

from colorama import init, Fore, Style
from dotenv import load_dotenv
from flask import Flask, abort, render_template, request
from werkzeug.exceptions import HTTPException

import guestbook
import guestbook_app
from guestbook_app.repositories import GuestRepository, GuestStoreError
from guestbook_app.services import (
    GuestService, GuestValidationError, MAX_NAME_LENGTH, VisitCounter,
)

web_logger = logging.getLogger('guestbook.web')

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(guestbook_app.__file__)), 'templates')

ENDPOINTS = [
    ('GET', '/', 'Strona główna'),
    ('GET', '/stats', 'Statystyki odwiedzin'),
    ('GET', '/form', 'Formularz dodawania gości'),
    ('POST', '/add', 'Dodawanie gościa (POST)'),
    ('GET', '/add?name=', 'Dodawanie gościa (GET)'),
    ('GET', '/list', 'Lista gości'),
    ('GET', '/remove?name=', 'Usuwanie gościa'),
    ('GET', '/clear', 'Czyszczenie listy'),
]


class ServerState:
    """Everything the request handlers share, owned by one Flask app."""

    def __init__(self, guests: GuestService, visits: VisitCounter) -> None:
        self.guests = guests
        self.visits = visits


def get_state(app: Flask) -> ServerState:
    return app.extensions['guestbook']


def _client_ip() -> str:
    return request.remote_addr or 'unknown'


def _single_value(values):
    """Return the one submitted value, or ``None`` unless exactly one was sent."""
    return values[0] if len(values) == 1 else None


def render_error_page(status: int, details: Optional[str] = None):
    return render_template('error_page.html', status=status, details=details), status


def render_bad_request(message: str, heading: str = 'Błąd: 400 Bad Request',
                       link: Optional[Dict] = None):
    return render_template('bad_request.html', heading=heading,
                           message=message, link=link), 400


def create_app(config: Optional[Dict] = None) -> Flask:
    """Build a Flask app serving the guestbook.

    Args:
        config: Mapping as returned by :func:`guestbook.load_config`; keys
            missing from it fall back to :data:`guestbook.DEFAULT_CONFIG`.
    """
    settings = dict(guestbook.DEFAULT_CONFIG)
    settings.update(config or {})

    guestbook.configure_log_files(settings)
    error_log = logging.getLogger(guestbook.ERROR_LOGGER)

    app = Flask(__name__, template_folder=TEMPLATES_DIR)
    app.config['GUESTBOOK'] = settings
    app.extensions['guestbook'] = ServerState(
        guests=GuestService(GuestRepository(settings['guests_file'])),
        visits=VisitCounter(),
    )
    state = get_state(app)

    # ------------------------------------------------------------------
    # Per-request bookkeeping
    # ------------------------------------------------------------------

    @app.before_request
    def count_visit():
        state.visits.record(_client_ip())

    @app.before_request
    def reject_implicit_methods():
        # werkzeug answers HEAD and OPTIONS on every GET route by itself
        if request.method in ('HEAD', 'OPTIONS'):
            abort(404)

    @app.after_request
    def write_access_log(response):
        guestbook.log_access(_client_ip(), request.path, response.status_code)
        return response

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @app.route('/', methods=['GET'])
    def index():
        return render_template('index.html', visits=state.visits.total)

    @app.route('/stats', methods=['GET'])
    def stats():
        return render_template('stats.html', per_ip=state.visits.per_ip())

    @app.route('/form', methods=['GET'])
    def form():
        return render_template('form.html', max_length=MAX_NAME_LENGTH)

    @app.route('/add', methods=['POST'])
    def add_guest_form():
        try:
            guest = state.guests.add(_single_value(request.form.getlist('name')))
        except GuestValidationError as e:
            return render_bad_request(str(e), heading='Błąd walidacji',
                                      link={'href': '/form', 'text': 'Spróbuj ponownie'})
        web_logger.info("Added guest %r", guest['name'])
        return render_template('added.html', guest=guest, show_date=True)

    @app.route('/add', methods=['GET'])
    def add_guest_query():
        try:
            guest = state.guests.add(_single_value(request.args.getlist('name')))
        except GuestValidationError as e:
            return render_bad_request(str(e),
                                      link={'href': '/form', 'text': 'Użyj formularza'})
        web_logger.info("Added guest %r", guest['name'])
        return render_template('added.html', guest=guest, show_date=False)

    @app.route('/list', methods=['GET'])
    def list_guests():
        return render_template('list.html', guests=state.guests.list())

    @app.route('/remove', methods=['GET'])
    def remove_guest():
        try:
            name = state.guests.validate_name(_single_value(request.args.getlist('name')))
        except GuestValidationError as e:
            return render_bad_request(str(e))

        try:
            removed = state.guests.remove(name)
        except GuestStoreError as e:
            error_log.error("Could not remove guest %r: %s", name, e)
            return render_error_page(500, f'Nie można usunąć gościa: {e}')

        if not removed:
            return render_template('guest_not_found.html', name=name), 404
        web_logger.info("Removed %d guest(s) named %r", removed, name)
        return render_template('removed.html', name=name)

    @app.route('/clear', methods=['GET'])
    def clear_guests():
        state.guests.clear()
        web_logger.info("Guest list cleared")
        return render_template('cleared.html')

    # ------------------------------------------------------------------
    # Error boundary
    # ------------------------------------------------------------------

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(e):
        return render_error_page(404)

    @app.errorhandler(GuestStoreError)
    def store_error(e):
        error_log.error("Guest store error on %s %s: %s", request.method, request.path, e)
        return render_error_page(500, str(e))

    @app.errorhandler(Exception)
    def unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        error_log.exception("Unexpected error on %s %s: %s", request.method, request.path, e)
        return render_error_page(500, 'Wystąpił nieoczekiwany błąd')

    return app


def print_banner(host: str, port: int) -> None:
    print("\n" + "=" * 60)
    print(f"{Fore.GREEN}Serwer działa na porcie {port}")
    print("=" * 60)
    print(f"\nOpen your browser and go to:\n  http://{host}:{port}")
    print("\nDostępne endpointy:")
    for method, path, description in ENDPOINTS:
        print(f"  {Fore.CYAN}{method:<5}{Style.RESET_ALL}{path:<15}- {description}")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60 + "\n")


def main():
    """Main entry point for the web server"""
    init(autoreset=True)
    load_dotenv()

    parser = argparse.ArgumentParser(description='Guestbook web server')
    parser.add_argument('--config', default='config.json', help='Path to config file')
    parser.add_argument('--host', help='Interface to bind (overrides config)')
    parser.add_argument('--port', type=int, help='Port to listen on (overrides config)')
    parser.add_argument('--guests-file', help='Guest list JSON file (overrides config)')
    args = parser.parse_args()

    try:
        config = guestbook.load_config(args.config)
    except ValueError as e:
        parser.error(str(e))
    if args.host:
        config['host'] = args.host
    if args.port is not None:
        config['port'] = args.port
    if args.guests_file:
        config['guests_file'] = args.guests_file

    guestbook.setup_logging(config['log_level'])
    guestbook.install_exception_hooks()

    app = create_app(config)
    print_banner(config['host'], config['port'])

    try:
        app.run(host=config['host'], port=config['port'], debug=False, threaded=True)
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}Guestbook server stopped")


if __name__ == '__main__':
    main()
