"""
CSV Transaction Import

Turns exported bank / budgeting-app CSV text into validated transaction
requests.

DESIGN DECISION: Rows are processed independently. A bad row is reported
with its 1-based line number (the header is line 1) and skipped; it never
aborts the batch. The importer only builds requests; the ledger assigns
ids and timestamps and appends the accepted rows in one mutation.

Recognized headers (any order, case-insensitive):
    date, description, type, amount, category, tags, statement description
"""

import datetime as dt
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser
from pydantic import ValidationError

from finance_ledger.importing.categories import CategoryMapper, original_category_tag
from finance_ledger.models.finance import NewTransaction, TransactionType


REQUIRED_FIELDS = ("date", "description", "type", "amount")
FALLBACK_DESCRIPTION_FIELD = "statement description"
PLACEHOLDER_DESCRIPTION = "Imported Transaction"

EMPTY_FILE_ERROR = "CSV file is empty or has no data rows"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_AMOUNT_NOISE = re.compile(r"[$,\s]")


class RowError(ValueError):
    """A single CSV row could not be turned into a transaction."""


@dataclass
class CsvParseOutcome:
    """Accepted requests plus one message per rejected row."""
    accepted: list[NewTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into trimmed fields.

    Double quotes toggle quoted mode, in which commas are literal. The
    quote characters themselves are dropped.
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def parse_import_date(raw: str) -> str:
    """
    Normalize a date cell to YYYY-MM-DD.

    ISO dates are kept verbatim so they never shift across time zones.
    Anything else is parsed and rendered from local calendar fields.
    """
    value = raw.strip()

    if _ISO_DATE.match(value):
        try:
            dt.date.fromisoformat(value)
        except ValueError:
            raise RowError(f"Invalid date format: {raw}")
        return value

    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        raise RowError(f"Invalid date format: {raw}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date().isoformat()


def parse_import_amount(raw: str) -> Decimal:
    """Strip currency symbols and thousands separators, then parse."""
    cleaned = _AMOUNT_NOISE.sub("", raw)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise RowError(f"Invalid amount: {raw}")
    if not amount.is_finite():
        raise RowError(f"Invalid amount: {raw}")
    return amount


def parse_import_type(raw: str) -> TransactionType:
    try:
        return TransactionType(raw.strip().lower())
    except ValueError:
        raise RowError(f"Unknown transaction type: {raw}")


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    message = first["msg"]
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = ".".join(str(p) for p in first["loc"])
    return f"{location}: {message}" if location else message


class CsvTransactionImporter:
    """
    Parses CSV text into NewTransaction requests.
    """

    def __init__(self, category_mapper: Optional[CategoryMapper] = None):
        self._categories = category_mapper or CategoryMapper()

    def parse(self, text: str) -> CsvParseOutcome:
        """
        Parse a whole CSV document.

        Never raises for bad input; problems are reported in the outcome.
        """
        outcome = CsvParseOutcome()
        lines = [line for line in text.splitlines() if line.strip()]

        if len(lines) < 2:
            outcome.errors.append(EMPTY_FILE_ERROR)
            return outcome

        headers = [h.lower() for h in parse_csv_line(lines[0])]

        for index, line in enumerate(lines[1:], start=2):
            try:
                outcome.accepted.append(self._parse_row(headers, line))
            except RowError as e:
                outcome.errors.append(f"Row {index}: {e}")
            except ValidationError as e:
                outcome.errors.append(f"Row {index}: {_validation_message(e)}")

        return outcome

    def _parse_row(self, headers: list[str], line: str) -> NewTransaction:
        values = parse_csv_line(line)
        if len(values) < len(headers):
            raise RowError("Not enough columns")

        row = dict(zip(headers, values))

        if not all(row.get(name) for name in REQUIRED_FIELDS):
            raise RowError("Missing required fields")

        date = parse_import_date(row["date"])
        amount = parse_import_amount(row["amount"])
        tx_type = parse_import_type(row["type"])

        category = None
        original_category = None
        if tx_type == TransactionType.EXPENSE and row.get("category"):
            original_category = row["category"]
            category = self._categories.resolve(original_category)

        tags = []
        if row.get("tags"):
            tags = [t.strip() for t in row["tags"].split(",") if t.strip()]
        if original_category:
            tags.append(original_category_tag(original_category))

        # Expenses are stored positive; transfers keep their direction
        if tx_type == TransactionType.EXPENSE:
            amount = abs(amount)

        description = (
            row.get("description")
            or row.get(FALLBACK_DESCRIPTION_FIELD)
            or PLACEHOLDER_DESCRIPTION
        )

        return NewTransaction(
            type=tx_type,
            amount=amount,
            description=description,
            category=category,
            date=date,
            tags=tags,
        )
