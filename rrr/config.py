"""Runtime configuration for the reader."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import click

APP_NAME = "rrr"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


def parse_address(text: str) -> Tuple[str, int]:
    """Split ``host[:port]``; the port defaults to DEFAULT_PORT."""
    text = text.strip()
    if not text:
        raise ValueError("No socket address found")
    if text.startswith("["):
        host, _, rest = text[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    elif text.count(":") == 1:
        host, _, port = text.partition(":")
    else:
        host, port = text, ""
    if not host:
        raise ValueError(f"No host in socket address {text!r}")
    if not port:
        return host, DEFAULT_PORT
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Bad port in socket address {text!r}")
    return host, int(port)


@dataclass(frozen=True)
class Config:
    data_dir: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    fetch_timeout: Optional[float] = None


def load_config() -> Config:
    """Build the configuration from environment variables and defaults."""
    data_dir = Path(os.getenv("RRR_DATA_DIR") or click.get_app_dir(APP_NAME))
    host, port = parse_address(os.getenv("RRR_ADDRESS") or f"{DEFAULT_HOST}:{DEFAULT_PORT}")
    timeout = os.getenv("RRR_FETCH_TIMEOUT")
    return Config(
        data_dir=data_dir,
        host=host,
        port=port,
        fetch_timeout=float(timeout) if timeout else None,
    )
