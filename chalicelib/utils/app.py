import functools
from typing import Callable

from chalice import Response

from chalicelib.constants import status_codes
from chalicelib.utils import exceptions
from chalicelib.utils.logger import logger, log_exception


def error_response(error: Exception, msg: str = "", status_code: int = status_codes.http400,
                   code: str = 'BAD_REQUEST', message: str = None, *args, **kwargs):
    log_exception(error=error, msg=msg, status_code=status_code, *args, **kwargs)
    return Response(
        body={
            'error': message if message is not None else str(error),
            'code': code,
            'errorId': getattr(logger, 'current_request_id')
        },
        status_code=status_code,
        headers={'Content-Type': 'application/json'}
    )


def request_exception_handler(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        try:
            logger.info(f'Calling function {func.__name__}')
            return func(*args, **kwargs)
        except exceptions.ApiError as api_error:
            return error_response(
                error=api_error,
                msg=f'function = {func.__name__} , error = {api_error}',
                status_code=api_error.STATUS_CODE,
                code=api_error.code)
        except Exception as exception:
            return error_response(
                error=exception,
                msg=f'function = {func.__name__}, error = {exception}',
                status_code=status_codes.http500,
                code='INTERNAL_SERVER_ERROR',
                message=f'Internal server error: {exception}')
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
