from collections.abc import Mapping, Sequence

import orjson


def dump_json(data: Mapping[str, object] | Sequence[object]) -> str:
    """Serialize data to an indented JSON string.

    Datetimes are written in RFC 3339 format, dataclasses as objects.

    Args:
        data: The data to serialize.

    Returns:
        The JSON document as a string.
    """
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode()
