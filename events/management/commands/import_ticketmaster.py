from django.core.management.base import BaseCommand, CommandError

from events.importers import import_ticketmaster_events, run_multi_query_import
from events.ticketmaster import TicketmasterError


class Command(BaseCommand):
    help = "Import Ticketmaster events for one or more cities directly into the events table"

    def add_arguments(self, parser):
        parser.add_argument("--country", default="DE", help="ISO country code (default: DE)")
        parser.add_argument("--city", action="append", dest="cities", default=[], help="City to import; repeatable")
        parser.add_argument("--keyword", default="", help="Optional search keyword")
        parser.add_argument("--max-pages", type=int, default=5)
        parser.add_argument("--page-size", type=int, default=200)

    def handle(self, *args, **options):
        base = {"countryCode": options["country"], "keyword": options["keyword"]}
        cities = options["cities"]

        if len(cities) > 1:
            outcome = run_multi_query_import(
                [{**base, "city": city} for city in cities],
                max_pages=options["max_pages"],
                page_size=options["page_size"],
            )
            for item in outcome["queries"]:
                city = item["query"].get("city")
                if item["status"] == "error":
                    self.stdout.write(self.style.ERROR(f"{city}: {item['error']}"))
                else:
                    res = item["result"]
                    self.stdout.write(f"{city}: {res['imported']} imported, {res['skipped']} skipped")
            totals = outcome["total"]
        else:
            query = {**base, "city": cities[0] if cities else None}
            try:
                totals = import_ticketmaster_events(
                    query, max_pages=options["max_pages"], page_size=options["page_size"]
                ).as_dict()
            except TicketmasterError as e:
                raise CommandError(str(e))

        self.stdout.write(
            self.style.SUCCESS(
                f"Found {totals['found']}, imported {totals['imported']}, "
                f"skipped {totals['skipped']}, errors {totals['errors']}"
            )
        )
        if totals["categories"]:
            breakdown = ", ".join(f"{k}: {v}" for k, v in sorted(totals["categories"].items()))
            self.stdout.write(f"Categories: {breakdown}")
        if totals["hit_limit"]:
            self.stdout.write(
                self.style.WARNING("Hit the 1000 result limit; split the import by city or date range")
            )
