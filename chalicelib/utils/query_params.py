from typing import Dict, Optional, Sequence

from chalicelib.constants.constants import MAX_PAGE_SIZE
from chalicelib.utils import exceptions


def get_query_params(request) -> Dict[str, str]:
    return dict(request.query_params or {})


def parse_int_param(params: Dict, name: str, code: str, default: Optional[int] = None,
                    minimum: Optional[int] = 0) -> Optional[int]:
    value = params.get(name)
    if value is None or value == '':
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise exceptions.InvalidQueryParameter(f'Invalid {name} parameter: {value}', code=code)
    if minimum is not None and parsed < minimum:
        raise exceptions.InvalidQueryParameter(f'{name} must be greater than or equal to {minimum}', code=code)
    return parsed


def parse_bool_param(params: Dict, name: str, code: str, default: Optional[bool] = None) -> Optional[bool]:
    value = params.get(name)
    if value is None or value == '':
        return default
    if value not in ('true', 'false'):
        raise exceptions.InvalidQueryParameter(f'{name} must be "true" or "false"', code=code)
    return value == 'true'


def parse_choice_param(params: Dict, name: str, code: str, choices: Sequence[str], default: str) -> str:
    value = params.get(name)
    if value is None or value == '':
        return default
    if value not in choices:
        raise exceptions.InvalidQueryParameter(
            f'Invalid {name} parameter. Must be one of: {", ".join(choices)}', code=code)
    return value


def parse_search_param(params: Dict, name: str = 'search') -> Optional[str]:
    value = (params.get(name) or '').strip()
    return value.lower() or None


def parse_pagination(params: Dict, default_limit: int):
    limit = parse_int_param(params, 'limit', 'INVALID_LIMIT', default=default_limit, minimum=1)
    offset = parse_int_param(params, 'offset', 'INVALID_OFFSET', default=0, minimum=0)
    return min(limit, MAX_PAGE_SIZE), offset
