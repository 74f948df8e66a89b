"""Management command to look up a place using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from explorer.api.views import DOMAIN_ROUTES, fetch_domain_records, get_location_resolver
from explorer.core.exceptions import ExplorerError


class Command(BaseCommand):
    help = "Resolve a place name and print its location or the records of one domain"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--query", type=str, required=True, help="Place name, e.g. Seattle")
        parser.add_argument(
            "--domain",
            type=str,
            choices=sorted(set(DOMAIN_ROUTES.values())),
            help="Domain to print; only the location is printed when omitted",
        )

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        query = (options.get("query") or "").strip()
        domain = options.get("domain")
        if not query:
            raise CommandError("--query must not be blank")

        try:
            if domain:
                payload: Any = fetch_domain_records(query, domain)
            else:
                payload = get_location_resolver().resolve(query).as_payload()
        except ExplorerError as exc:
            raise CommandError(f"Lookup failed: {exc}") from exc

        self.stdout.write(json.dumps(payload))
