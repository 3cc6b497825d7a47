"""
CHANNEL TAGS

Purpose:
- Channels partition stores, partners, orders and complaints
- Open-ended set: operators may introduce a custom channel at runtime
- Tags are uppercase, trimmed and never empty

Rules:
- No IO
- Deterministic output
"""

from typing import NewType, Optional, Iterable, List

from aquatrack.config import DEFAULT_CHANNEL, CUSTOM_CHANNEL, KNOWN_CHANNELS
from aquatrack.core.errors import ValidationError


ChannelTag = NewType("ChannelTag", str)


def channel_tag(name: str) -> ChannelTag:
    """
    Validate and normalize a channel name into a ChannelTag.

    Raises ValidationError for empty names and for the bare CUSTOM selector.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Channel name is required")

    tag = name.strip().upper()

    if tag == CUSTOM_CHANNEL:
        raise ValidationError("Enter a name for the custom channel")

    return ChannelTag(tag)


def resolve_channel_selection(selection: Optional[str], custom_name: Optional[str] = None) -> ChannelTag:
    """
    Turn a channel picker value into a tag.

    Empty selection falls back to GENERAL. Selecting CUSTOM requires custom_name.
    """
    if not selection or not selection.strip():
        return ChannelTag(DEFAULT_CHANNEL)

    if selection.strip().upper() == CUSTOM_CHANNEL:
        return channel_tag(custom_name or "")

    return channel_tag(selection)


def channel_or_default(value: Optional[str]) -> ChannelTag:
    """Lenient form used when reading backend records: missing channel reads as GENERAL."""
    if not isinstance(value, str) or not value.strip():
        return ChannelTag(DEFAULT_CHANNEL)
    return ChannelTag(value.strip().upper())


def channel_choices(extra: Iterable[str] = ()) -> List[str]:
    """Known channels, any channels seen in data, then the CUSTOM selector."""
    choices = list(KNOWN_CHANNELS)
    for tag in extra:
        normalized = channel_or_default(tag)
        if normalized not in choices:
            choices.append(normalized)
    choices.append(CUSTOM_CHANNEL)
    return choices
