from __future__ import annotations

import click
from flask import Flask, current_app

from app.services.inbound_store import get_inbound_store, seed_sample_requests


def register_cli(app: Flask) -> None:
    @app.cli.command("seed-inbound")
    def seed_inbound_command() -> None:
        """Insert the sample inbound requests that are not present yet."""
        created = seed_sample_requests(get_inbound_store())
        current_app.logger.info("seeded %d sample inbound requests", created)
        click.echo(f"Seeded {created} sample inbound request(s).")
