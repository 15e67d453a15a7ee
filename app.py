"""
Minimal Flask front end for the rrr feed reader.

Every request is decoded into a task and performed against the single State
while holding its lock:
  GET  /             home page; ?refresh-local, ?refresh-remote and
                     ?refresh-remote-urls reload that part first
  GET  /local-add    form for appending a post to a local feed file
  POST /local-add
  GET  /remote-add   form for subscribing to a remote feed
  POST /remote-add
Anything else is a 400.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple

import click
from flask import Flask, Request, Response, request

from rrr import fetch
from rrr.config import load_config, parse_address
from rrr.errors import LockUnavailableError, RrrError, TaskError
from rrr.guard import StateGuard
from rrr.state import State
from rrr.tasks import Method, extract_task

LOGGER = logging.getLogger(__name__)

_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class FlaskTaskSpec:
    """Adapts a Flask request to what ``extract_task`` reads."""

    def __init__(self, req: Request) -> None:
        self._request = req

    def method(self) -> Method:
        return Method.from_name(self._request.method)

    def url_suffix(self) -> str:
        return self._request.path

    def query_param(self, key: str) -> Optional[str]:
        return self._request.args.get(key)

    def _form_pairs(self) -> List[Tuple[str, str]]:
        return list(self._request.form.items(multi=True))

    def local_add_form(self) -> List[Tuple[str, str]]:
        return self._form_pairs()

    def remote_feed_add_form(self) -> List[Tuple[str, str]]:
        return self._form_pairs()


def _text(body: str, status: int) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def create_app(guard: StateGuard) -> Flask:
    app = Flask(__name__)

    @app.route("/", defaults={"path": ""}, methods=_METHODS, provide_automatic_options=False)
    @app.route("/<path:path>", methods=_METHODS, provide_automatic_options=False)
    def handle(path: str) -> Response:
        try:
            with guard.locked() as state:
                task = extract_task(FlaskTaskSpec(request), state)
                html = state.perform(task)
        except LockUnavailableError as exc:
            return _text(str(exc), 503)
        except TaskError as exc:
            LOGGER.info("Bad request %s %s: %s", request.method, request.path, exc)
            return _text(str(exc), 400)
        except (RrrError, OSError) as exc:
            LOGGER.error("Task for %s %s failed: %s", request.method, request.path, exc)
            return _text(str(exc), 500)
        return Response(html, mimetype="text/html")

    return app


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@click.command()
@click.argument("address", required=False)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding remote-feeds and local-feeds/",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(address: Optional[str], data_dir: Optional[Path], verbose: bool) -> None:
    """Serve the feed reader on ADDRESS (host[:port], default 127.0.0.1:8080)."""
    setup_logging(verbose)
    try:
        config = load_config()
        if address:
            host, port = parse_address(address)
            config = replace(config, host=host, port=port)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    if data_dir:
        config = replace(config, data_dir=data_dir)

    try:
        state = State.create(config.data_dir, fetch=partial(fetch.get, timeout=config.fetch_timeout))
    except (RrrError, OSError) as exc:
        raise click.ClickException(f"Could not start: {exc}") from exc

    app = create_app(StateGuard(state))
    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == "__main__":
    main()
