# ledger/management/commands/verify_ledger_consistency.py

from __future__ import annotations

import json

from django.core.management.base import BaseCommand

from ledger.services.consistency import INFO, verify_ledger_consistency


class Command(BaseCommand):
    help = "Report ledger / invoice consistency issues (read-only)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the issues as JSON.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any non-informational issue is found.",
        )

    def handle(self, *args, **options):
        issues = verify_ledger_consistency()

        if options.get("json"):
            self.stdout.write(json.dumps([i.as_dict() for i in issues], indent=2, default=str))
        elif not issues:
            self.stdout.write(self.style.SUCCESS("No consistency issues found"))
        else:
            self.stdout.write(f"Found {len(issues)} types of issues")
            for issue in issues:
                style = self.style.NOTICE if issue.severity == INFO else self.style.WARNING
                self.stdout.write(style(f"- [{issue.severity}] {issue.type}: {issue.description} ({issue.count})"))
                for key, value in issue.details.items():
                    self.stdout.write(f"    {key}: {value}")

        blocking = [i for i in issues if i.severity != INFO]
        if options.get("strict") and blocking:
            raise SystemExit(1)
