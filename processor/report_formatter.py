"""Render circle event records into report blocks and a synthesis prompt."""
from datetime import date
from typing import List, Optional, Sequence, Union

from processor.models import EventRecord

DateLike = Union[date, str, None]

ALL_GROUPS_LABEL = 'All Groups'

# Section order below is what the model is scored against; keep it stable.
PROMPT_SCAFFOLD = """Act as a high-level ministry strategist and spiritual formation consultant.

I will paste multiple Circle Event reports below. Your job is to produce a full leadership-level report with insight, not just summaries.

Use the following structure every time:

1. Snapshot
- Number of circles that met
- Number canceled
- Total attendance
- Average circle size
- 3 largest circles
- 3 smallest circles (that met)

2. Major Spiritual Themes
Identify repeated themes across circles.
Explain what God appears to be doing spiritually in this campus.
Group insights into clear categories.
After each major theme, include 1-2 direct quotes from the notes that best illustrate it.
Format quotes as: "[exact quote]" - [Circle name]

3. Themes by Circle Type
If the circle names or context suggest distinct group types (e.g. men, women, couples, young adults, mixed), identify any themes or patterns that appear unique to a particular type.
Note where different types of circles are engaging differently with formation, community, or spiritual depth.
If circle types cannot be determined from the data, skip this section.

4. Cultural Indicators
- Invitational culture
- Repentance and confession
- Leadership development
- Depth vs surface engagement
- Signs of maturity
- Warning signs if present
Where possible, anchor each indicator with a brief quote or specific example from the notes.

5. Prayer Request Categories
Group all prayer requests mentioned across circles into thematic categories (e.g. health, family, work, spiritual breakthrough, grief, relationships).
For each category:
- List the category name and the total number of circles where it appeared
- List every circle that mentioned it by name
- Include 1-2 representative example quotes from the notes
Note any prayer themes that appear unusually heavy or widespread, as these may indicate what is pressing on the community spiritually.

6. High-Weight Pastoral Moments
Identify specific names or stories that require personal follow-up.
Briefly explain why each matters.
Include a direct quote from the notes where relevant.

7. Follow-Up Urgency
Divide follow-up needs into two tiers:
- This week: People or situations requiring immediate pastoral contact
- This month: Situations worth monitoring or addressing in the near term
For each item use this format: [Person's name] - [Circle name] - [Reason for follow-up]
Be specific. Do not generalize.

8. Leadership Development Observations
- Backup leaders emerging
- Leaders who are growing
- Circles that may need coaching
- Patterns in cancellations

9. Strategic Recommendations
Give 3-5 clear leadership moves for me this week.

10. Two-Sentence Executive Summary
End with a concise, high-level read of what is happening spiritually.

Tone:
- Clear
- Direct
- Insightful
- Not fluffy
- Focus on formation, not attendance
- Speak in leadership language

Do not repeat raw notes. Synthesize.
Quotes must be taken verbatim from the notes provided. Do not paraphrase or fabricate."""


def long_date(raw: str) -> str:
    """
    Render an ISO calendar date as e.g. "Monday, January 15, 2024".

    Args:
        raw: Date string from the source (expected YYYY-MM-DD)

    Returns:
        Long-form date, or the raw string if it cannot be parsed
    """
    try:
        parsed = date.fromisoformat(raw.strip())
    except (AttributeError, ValueError):
        return raw
    return f"{parsed:%A}, {parsed:%B} {parsed.day}, {parsed.year}"


def attendee_names(record: EventRecord) -> List[str]:
    names = []
    for attendee in record.attendees:
        name = attendee.name or 'Unknown'
        if attendee.status and attendee.status != 'Present':
            name += f" ({attendee.status})"
        names.append(name)
    return names


def format_event(record: EventRecord, index: int) -> str:
    """
    Format one event record as a numbered report block.

    Args:
        record: Event record to render
        index: Zero-based position of the record in the report

    Returns:
        Multi-line report block
    """
    lines = [
        f"--- Circle Report #{index + 1} ---",
        f"Circle: {record.title}"
    ]

    if record.date:
        lines.append(f"Date: {long_date(record.date)}")

    if record.did_not_meet:
        lines.append('Status: DID NOT MEET (canceled)')
    else:
        lines.append('Status: Met')

    if record.head_count is not None:
        lines.append(f"Head Count: {record.head_count}")

    if record.attendees:
        names = attendee_names(record)
        lines.append(
            f"Attendees Recorded ({len(record.attendees)}): {', '.join(names)}"
        )

    if record.topic:
        lines.append(f"\nTopic:\n{record.topic}")
    if record.notes:
        lines.append(f"\nNotes:\n{record.notes}")
    if record.prayer_requests:
        lines.append(f"\nPrayer Requests:\n{record.prayer_requests}")

    return '\n'.join(lines)


def date_range_label(start_date: DateLike, end_date: DateLike) -> str:
    start = _as_text(start_date)
    end = _as_text(end_date)
    if not end or start == end:
        return start
    return f"{start} to {end}"


def build_prompt(
    records: Sequence[EventRecord],
    start_date: DateLike,
    end_date: DateLike,
    group_filter: Optional[str]
) -> str:
    """
    Build the single synthesis prompt for a set of event records.

    Args:
        records: Event records in fetch order
        start_date: First day of the range
        end_date: Last day of the range (may equal start_date or be empty)
        group_filter: Group filter the records were fetched with

    Returns:
        Prompt text; identical inputs always produce identical output
    """
    reports = '\n\n'.join(
        format_event(record, i) for i, record in enumerate(records)
    )
    return (
        f"{PROMPT_SCAFFOLD}\n\n"
        f"Date Range: {date_range_label(start_date, end_date)}\n"
        f"Group Filter: {group_filter or ALL_GROUPS_LABEL}\n\n"
        f"Here are the Circle Event reports:\n\n"
        f"{reports}"
    )


def format_export(records: Sequence[EventRecord]) -> str:
    """
    Render records as plain text for copying out of the explorer.

    Args:
        records: Event records in fetch order

    Returns:
        Text blocks separated by a horizontal rule
    """
    blocks = []
    for record in records:
        lines = [record.title]
        if record.date:
            rendered = long_date(record.date)
            lines.append(rendered if rendered != record.date else f"Date: {record.date}")
        lines.append(f"Event ID: {record.event_id}")
        if record.did_not_meet:
            lines.append('Meeting did not occur')
        if record.head_count is not None:
            lines.append(f"Head Count: {record.head_count}")
        if record.attendees:
            lines.append(f"Attendees Recorded: {len(record.attendees)}")
        if record.topic:
            lines.append(f"\nTopic:\n{record.topic}")
        if record.notes:
            lines.append(f"\nNotes:\n{record.notes}")
        if record.prayer_requests:
            lines.append(f"\nPrayer Requests:\n{record.prayer_requests}")
        if record.attendees:
            lines.append(f"\nAttendees:\n{', '.join(attendee_names(record))}")
        blocks.append('\n'.join(lines))
    return '\n\n---\n\n'.join(blocks)


def _as_text(value: DateLike) -> str:
    if value is None:
        return ''
    if isinstance(value, date):
        return value.isoformat()
    return value
