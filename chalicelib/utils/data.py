import json
import random
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic.alias_generators import to_camel

from chalicelib.constants.substitute_keys import from_db
from chalicelib.utils import exceptions


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds')


def to_int(value, default=None) -> Optional[int]:
    """
    DynamoDB returns every number as Decimal, amounts and counters are integers
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, Decimal)):
        return int(value)
    return default


def to_number(value):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def to_db_value(value):
    """ boto3 rejects floats, DynamoDB numbers are stored as Decimal """
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: to_db_value(val) for key, val in value.items()}
    if isinstance(value, list):
        return [to_db_value(val) for val in value]
    return value


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


def to_ui_keys(item: Dict) -> Dict:
    """
    Converts a flat db/entity dict to the camelCase representation returned by the API
    """
    item = dict(item)
    substitute_keys(dict_to_process=item, base_keys=from_db)
    return {to_camel(key): to_number(value) for key, value in item.items()}


def parse_raw_body(chalice_request) -> Dict[str, Any]:
    request_raw_body = chalice_request.raw_body
    if not request_raw_body:
        return {}
    try:
        body = json.loads(request_raw_body)
    except ValueError as error:
        raise exceptions.InvalidRequestBody(f'Request body is not valid JSON: {error}')
    if not isinstance(body, dict):
        raise exceptions.InvalidRequestBody()
    return body


def parse_id(value, error_class=exceptions.InvalidId) -> int:
    try:
        id_ = int(str(value))
    except (TypeError, ValueError):
        raise error_class()
    if id_ <= 0:
        raise error_class()
    return id_


def generate_order_number(prefix: str) -> str:
    """
    Human-readable reference, e.g. ORD-1718000000000-4821. Uniqueness is not checked.
    """
    return f'{prefix}-{int(time.time() * 1000)}-{random.randint(1000, 9999)}'
