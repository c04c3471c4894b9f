import json
from decimal import Decimal, ROUND_HALF_UP
from typing import Type, TypeVar
from urllib.parse import parse_qs

from pydantic import BaseModel, ValidationError

from chalicelib.utils import exceptions

SchemaType = TypeVar('SchemaType', bound=BaseModel)

CENTS = Decimal('1.00')


def replace_dict_key(item, orig_key, new_key):
    if orig_key in item:
        if new_key not in item:
            item[new_key] = item[orig_key]
        del item[orig_key]


def substitute_keys(dict_to_process: dict, base_keys: dict, opt_dict=None):
    if opt_dict is None:
        opt_dict = {}
    all_keys = {**base_keys, **opt_dict}
    for key, val in all_keys.items():
        if val:
            replace_dict_key(dict_to_process, key, val)
        elif key in dict_to_process.keys():
            dict_to_process.pop(key, None)


def parse_raw_body(chalice_request) -> dict:
    request_raw_body = chalice_request.raw_body
    if not request_raw_body:
        return {}
    content_type = chalice_request.headers.get('content-type', '')
    if content_type.startswith('application/x-www-form-urlencoded'):
        try:
            form = parse_qs(request_raw_body.decode('utf-8'))
        except UnicodeDecodeError:
            raise exceptions.InvalidInput('Request body is not valid UTF-8')
        return cleanup_dict({key: values[-1] for key, values in form.items()}, ['', None])
    try:
        body = json.loads(request_raw_body, parse_float=Decimal)
    except ValueError:
        raise exceptions.InvalidInput('Request body is not a valid JSON document')
    if not isinstance(body, dict):
        raise exceptions.InvalidInput('Request body must be a JSON object')
    return cleanup_dict(body, [None])


def cleanup_dict(item: dict, list_of_values: list):
    """ Remove top level fields whose value is one of list_of_values """
    return {key: value for key, value in item.items() if value not in list_of_values}


def validation_message(error: ValidationError) -> str:
    """
    Flatten pydantic errors into one client-facing sentence
    """
    parts = []
    for err in error.errors():
        location = '.'.join(str(loc) for loc in err.get('loc', ()))
        parts.append(f"{location}: {err.get('msg')}" if location else err.get('msg'))
    return '; '.join(parts)


def validate_body(schema: Type[SchemaType], body: dict) -> SchemaType:
    try:
        return schema.model_validate(body)
    except ValidationError as error:
        raise exceptions.InvalidInput(validation_message(error))


def parse_request(schema: Type[SchemaType], chalice_request) -> SchemaType:
    return validate_body(schema, parse_raw_body(chalice_request))


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
