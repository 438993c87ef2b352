"""
Scripted assistant responses and RAG prompt construction.

The generate stage picks one of three canned answers by keyword:
beach + location, then parking, then a generic fallback.
"""

from typing import Sequence

from .corpus import Record

BEACH_KEYWORDS = ("beach",)
LOCATION_KEYWORDS = ("st kilda",)
PARKING_KEYWORDS = ("parking",)

BEACH_LOCATION_RESPONSE = """Based on your query, I found 2 properties in St Kilda near the beach that might interest you:

1. A 2-bedroom apartment at 42 Beach Rd ($450/week) with a pool and parking, just steps from St Kilda beach.

2. A renovated 2-bedroom apartment at 15 Acland St ($520/week) with a balcony and partial ocean views.

Both properties are within walking distance to the beach. Would you like more details about either of these options?"""

PARKING_RESPONSE = """I found 2 properties with parking facilities that might suit your needs:

1. A 2-bedroom apartment at 42 Beach Rd in St Kilda ($450/week) with secure parking, a pool, and close proximity to the beach.

2. A 1-bedroom apartment at 78 Carlisle St in St Kilda ($380/week) with parking and access to a building gym.

Both offer convenient parking options. The Beach Rd property is more expensive but includes additional amenities like a pool and beach access."""

DEFAULT_RESPONSE = """Based on your search criteria, I found several properties that might interest you:

1. A 2-bedroom apartment in St Kilda at 42 Beach Rd ($450/week) near the beach with pool and parking.

2. Another 2-bedroom in St Kilda on Acland St ($520/week) with a balcony and ocean views.

3. A more affordable 1-bedroom option on Carlisle St ($380/week) with gym access.

4. If you need more space, there's a 3-bedroom house in nearby Elwood ($750/week) with a backyard.

Would you like more specific information about any of these properties?"""

PROMPT_INSTRUCTIONS = (
    "Based on the user query and the provided property information, answer the user's "
    "question about available properties. If specific properties match their criteria, "
    "mention the details. If no properties exactly match, suggest close alternatives. "
    "Be helpful and informative."
)


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def select_response(query: str) -> str:
    """Pick the scripted answer for a query (case-insensitive)."""
    lowered = query.lower()
    if _contains_any(lowered, BEACH_KEYWORDS) and _contains_any(lowered, LOCATION_KEYWORDS):
        return BEACH_LOCATION_RESPONSE
    if _contains_any(lowered, PARKING_KEYWORDS):
        return PARKING_RESPONSE
    return DEFAULT_RESPONSE


def format_record(record: Record) -> str:
    """Serialize one record as a context block with fields in fixed order."""
    return "\n".join([
        f"Property ID: {record.id}",
        f"Type: {record.type}",
        f"Bedrooms: {record.bedrooms}",
        f"Bathrooms: {record.bathrooms}",
        f"Address: {record.address}",
        f"Weekly Rent: ${record.price}",
        f"Features: {', '.join(record.features)}",
        f"Description: {record.description}",
    ])


def build_context(records: Sequence[Record]) -> str:
    """Join record blocks with blank lines."""
    return "\n\n".join(format_record(record) for record in records)


def build_prompt(query: str, context: str) -> str:
    """Build the full RAG prompt sent to the generative model."""
    return (
        f"User Query: {query}\n"
        f"\n"
        f"CONTEXT INFORMATION:\n"
        f"{context}\n"
        f"\n"
        f"{PROMPT_INSTRUCTIONS}\n"
        f"\n"
        f"Answer:"
    )
