"""
Case aggregation.

Groups raw case records into disease x neighborhood counts. The
neighborhood is read from the address: "Rua X, Bairro Y" -> "Bairro Y".
"""

from collections import defaultdict
from collections.abc import Iterable

from models.models import NOT_INFORMED, CaseRecord

AggregationTable = dict[str, dict[str, int]]


def extract_neighborhood(address: str | None) -> str:
    """
    Derive the neighborhood from a free-text address.

    Takes the second comma-separated segment when it is present and not
    blank, otherwise the first one, otherwise NOT_INFORMED.
    """
    segments = [segment.strip() for segment in (address or "").split(",")]
    if len(segments) > 1 and segments[1]:
        return segments[1]
    if segments[0]:
        return segments[0]
    return NOT_INFORMED


def aggregate_cases(records: Iterable[CaseRecord]) -> AggregationTable:
    """Count records per diagnosis and neighborhood."""
    table: defaultdict[str, defaultdict[str, int]] = defaultdict(lambda: defaultdict(int))
    for record in records:
        table[record.diagnosis][extract_neighborhood(record.address)] += 1
    return {disease: dict(counts) for disease, counts in table.items()}


def total_cases(table: AggregationTable) -> int:
    return sum(count for counts in table.values() for count in counts.values())
