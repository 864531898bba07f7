#!/usr/bin/env python3
"""
Event Analyzer CLI - Command-line interface for event page analysis.

Commands:
- analyze: full analysis of a scraped page payload
- recover: recover a JSON document from a saved model response
- precheck: classify whether a page is dedicated to one event
- missing: list required fields a saved record is still missing
"""

import click
import sys
import os
import json
from typing import Tuple
from tabulate import tabulate

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from analysis_service import EventAnalysisService
from analyzers.clients.model_client import ReplayModelClient
from analyzers.exceptions import AnalysisError, StructuralDecodeFailure, ConfigurationError
from analyzers.field_repair import missing_fields
from analyzers.parsers.fallback_extractor import FallbackFieldExtractor
from analyzers.parsers.recovery_parser import JsonRecoveryParser
from config import (
    BANNER_WIDTH, SECTION_SEPARATOR_WIDTH, MAX_DISPLAY_TEXT, MAX_RAW_RESPONSE_DISPLAY,
    FINISH_REASON_STOP, FINISH_REASON_MAX_TOKENS, FINISH_REASON_SAFETY
)
from event_models import EventRecord, PageSignals
from shared_utils import truncate_text


FINISH_REASONS = [FINISH_REASON_STOP, FINISH_REASON_MAX_TOKENS, FINISH_REASON_SAFETY]


def print_banner(text: str, width: int = BANNER_WIDTH):
    """Print a formatted banner."""
    print("=" * width)
    print(text.center(width))
    print("=" * width)


def print_section(text: str, width: int = SECTION_SEPARATOR_WIDTH):
    """Print a section separator."""
    print(f"\n{'-' * width}")
    print(text)
    print(f"{'-' * width}")


def load_json_file(path: str):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Could not read JSON from {path}: {str(e)}")


def build_service(responses: Tuple[str, ...], finish_reason: str) -> EventAnalysisService:
    try:
        if responses:
            return EventAnalysisService(model_client=ReplayModelClient.from_files(list(responses), finish_reason))
        return EventAnalysisService()
    except ConfigurationError as e:
        raise click.ClickException(f"Configuration error: {str(e)}")


def print_record(record: EventRecord):
    """Print a record summary with tabulated collections."""
    summary = [
        ['Event', record.event_name],
        ['Date', record.date or 'TBD'],
        ['Start', record.start_date or 'TBD'],
        ['End', record.end_date or 'TBD'],
        ['Location', truncate_text(record.location, MAX_DISPLAY_TEXT) or 'TBD'],
        ['Attendees', record.estimated_attendees if record.estimated_attendees is not None else 'Unknown'],
        ['Description', truncate_text(record.description, MAX_DISPLAY_TEXT)],
    ]
    print(tabulate(summary, tablefmt='grid'))

    if record.people:
        print_section(f"People ({len(record.people)})")
        rows = [[p.name, p.role or '', truncate_text(p.title, 40), truncate_text(p.company, 30)]
                for p in record.people]
        print(tabulate(rows, headers=['Name', 'Role', 'Title', 'Company'], tablefmt='grid'))

    if record.sponsors:
        print_section(f"Sponsors ({len(record.sponsors)})")
        print(tabulate([[s.name, s.tier or ''] for s in record.sponsors], headers=['Name', 'Tier'], tablefmt='grid'))

    if record.expected_personas:
        print_section("Expected Personas")
        rows = [[p.persona, p.likelihood or '', p.count or ''] for p in record.expected_personas]
        print(tabulate(rows, headers=['Persona', 'Likelihood', 'Count'], tablefmt='grid'))

    if record.next_best_actions:
        print_section("Next Best Actions")
        rows = [[a.priority, truncate_text(a.action, MAX_DISPLAY_TEXT)] for a in record.next_best_actions]
        print(tabulate(rows, headers=['Priority', 'Action'], tablefmt='grid'))

    if record.related_events:
        print_section("Related Events")
        rows = [[r.name or '', r.url] for r in record.related_events]
        print(tabulate(rows, headers=['Name', 'URL'], tablefmt='grid'))


@click.group()
@click.version_option(version='1.0.0')
def cli():
    """Event Analyzer CLI - Extract structured event records from pages."""
    pass


@cli.command()
@click.argument('page_json', type=click.Path(exists=True, dir_okay=False))
@click.option('--response', 'responses', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='Replay saved model responses instead of calling the model (repeat for the repair call)')
@click.option('--finish-reason', type=click.Choice(FINISH_REASONS), default=FINISH_REASON_STOP,
              help='Finish reason reported for replayed responses')
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table')
def analyze(page_json: str, responses: Tuple[str, ...], finish_reason: str, output_format: str):
    """Analyze a scraped page payload (PageSignals JSON)."""
    signals = PageSignals.from_dict(load_json_file(page_json))
    service = build_service(responses, finish_reason)

    try:
        record = service.analyze(signals)
    except AnalysisError as e:
        print(f"❌ {str(e)}")
        sys.exit(1)

    if output_format == 'json':
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        return

    print_banner(f"Event Analysis - {signals.url or page_json}")
    print_record(record)


@cli.command()
@click.argument('response_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--truncated', is_flag=True, help='The response hit the output token cap')
def recover(response_file: str, truncated: bool):
    """Recover the JSON document from a saved model response."""
    with open(response_file, 'r', encoding='utf-8') as f:
        raw_text = f.read()

    try:
        result = JsonRecoveryParser().recover(raw_text, expect_truncation=truncated)
    except StructuralDecodeFailure as e:
        print(f"⚠️ Structured decode failed: {str(e)}")
        if e.recovered_text:
            print_section("Best-effort text")
            print(truncate_text(e.recovered_text, MAX_RAW_RESPONSE_DISPLAY))
        fields = FallbackFieldExtractor().extract_fields(e.recovered_text or raw_text)
        if not fields:
            print("❌ No event fields could be recovered")
            sys.exit(1)
        print_section("Fallback fields")
        print(tabulate(sorted(fields.items()), headers=['Field', 'Value'], tablefmt='grid'))
        return

    if result.truncation_repaired:
        print("✂️  Truncated response repaired")
    print(json.dumps(result.document, indent=2, ensure_ascii=False))


@cli.command()
@click.argument('page_json', type=click.Path(exists=True, dir_okay=False))
@click.option('--response', 'responses', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='Replay a saved model response instead of calling the model')
def precheck(page_json: str, responses: Tuple[str, ...]):
    """Check whether a page is dedicated to a single event."""
    signals = PageSignals.from_dict(load_json_file(page_json))
    service = build_service(responses, FINISH_REASON_STOP)

    try:
        result = service.precheck(signals)
    except AnalysisError as e:
        print(f"❌ {str(e)}")
        sys.exit(1)

    rows = [[key, value] for key, value in result.to_dict().items()]
    print(tabulate(rows, headers=['Field', 'Value'], tablefmt='grid'))
    print("\n✅ Event page" if result.is_event else "\n🚫 Not an event page")


@cli.command()
@click.argument('record_json', type=click.Path(exists=True, dir_okay=False))
def missing(record_json: str):
    """List required fields a saved event record is still missing."""
    record = EventRecord.from_document(load_json_file(record_json))
    fields = missing_fields(record)

    if not fields:
        print("✅ No required fields missing")
        return

    print(f"Missing {len(fields)} required field(s):")
    print(tabulate([[name] for name in fields], headers=['Field'], tablefmt='grid'))


if __name__ == '__main__':
    cli()
