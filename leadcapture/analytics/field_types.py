"""
Form field type tags.

Every captured value is stored as a raw string regardless of the declared
field type. FieldType turns the declared type name into a closed set of tags,
and each tag carries the aggregation rule the field statistics pass applies
to its values.
"""
import logging
from enum import Enum
from typing import List

logger = logging.getLogger('analytics.field_types')


class Aggregation(Enum):
    """What the field statistics pass collects for a value besides the filled credit."""
    NONE = 'none'
    TEXT_LENGTH = 'text_length'
    SINGLE_OPTION = 'single_option'
    MULTI_OPTION = 'multi_option'


class FieldType(Enum):
    TEXT = 'TEXT'
    TEXTAREA = 'TEXTAREA'
    SINGLE_SELECT = 'SINGLE_SELECT'
    MULTI_SELECT = 'MULTI_SELECT'
    NUMBER = 'NUMBER'
    EMAIL = 'EMAIL'
    PHONE = 'PHONE'
    DATE = 'DATE'
    DATETIME = 'DATETIME'
    BOOLEAN = 'BOOLEAN'

    @classmethod
    def parse(cls, raw) -> 'FieldType':
        """
        Resolve a declared type name to a tag.

        Case-insensitive. Unknown or missing names fall back to TEXT.
        """
        if isinstance(raw, cls):
            return raw
        name = str(raw or '').strip().upper()
        try:
            return cls(name)
        except ValueError:
            logger.warning("Unknown field type %r, treating as TEXT", raw)
            return cls.TEXT

    @property
    def aggregation(self) -> Aggregation:
        return _AGGREGATIONS.get(self, Aggregation.NONE)

    @property
    def is_text(self) -> bool:
        return self.aggregation is Aggregation.TEXT_LENGTH

    @property
    def is_select(self) -> bool:
        return self.aggregation in (Aggregation.SINGLE_OPTION, Aggregation.MULTI_OPTION)


_AGGREGATIONS = {
    FieldType.TEXT: Aggregation.TEXT_LENGTH,
    FieldType.TEXTAREA: Aggregation.TEXT_LENGTH,
    FieldType.SINGLE_SELECT: Aggregation.SINGLE_OPTION,
    FieldType.MULTI_SELECT: Aggregation.MULTI_OPTION,
}


def split_options(value: str) -> List[str]:
    """Split a multi-select submission on commas. Duplicates are kept."""
    options = []
    for part in value.split(','):
        option = part.strip()
        if option:
            options.append(option)
    return options
