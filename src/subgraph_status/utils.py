import traceback
from decimal import Decimal
from typing import Any
from typing import TypeVar

import orjson
from pydantic import BaseModel
from pydantic import ValidationError

from subgraph_status.exceptions import InvalidDataError

ObjectT = TypeVar('ObjectT', bound=BaseModel)


def parse_object(type_: type[ObjectT], data: Any) -> ObjectT:
    try:
        return type_.model_validate(data)
    except ValidationError as e:
        raise InvalidDataError(f'Failed to parse: {e.errors()}', type_, data) from e


def _default_for_decimals(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError


def _default_for_anything(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode='json', by_alias=True, exclude_unset=True)
    return str(obj)


def json_dumps_plain(obj: Any | str) -> str:
    """Smarter json.dumps"""
    return orjson.dumps(
        obj,
        default=_default_for_decimals,
    ).decode()


def json_dumps(obj: Any | str, option: int | None = orjson.OPT_INDENT_2) -> bytes:
    """Smarter json.dumps"""
    return orjson.dumps(
        obj,
        default=_default_for_decimals,
        option=option,
    )


def error_details(error: BaseException) -> dict[str, Any]:
    """Collect everything an exception carries into a JSON-friendly dict.

    Includes the class name, message, positional args, instance attributes and formatted traceback.
    Values that can't be serialized are replaced with their `str()`.
    """
    details: dict[str, Any] = {
        'type': type(error).__name__,
        'message': str(error),
        'args': list(error.args),
    }
    for key, value in vars(error).items():
        if key.startswith('__'):
            continue
        details[key] = value
    details['traceback'] = ''.join(traceback.format_exception(error))

    # NOTE: Round-trip through orjson to get rid of non-serializable values
    return orjson.loads(orjson.dumps(details, default=_default_for_anything, option=orjson.OPT_NON_STR_KEYS))  # type: ignore[no-any-return]
