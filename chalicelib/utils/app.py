import functools
from typing import Callable

from chalice import Response

from chalicelib.constants.status_codes import http500
from chalicelib.utils.exceptions import ApplicationError
from chalicelib.utils.logger import logger, log_exception

GENERIC_ERROR_MESSAGE = 'Server error'


def error_response(error: Exception, msg: str = "", status_code: int = 400, *args, **kwargs):
    log_exception(error, status_code, msg, *args, **kwargs)
    return Response(
        body={
            'message': str(error) if status_code < http500 or isinstance(error, ApplicationError)
            else GENERIC_ERROR_MESSAGE,
            'error': error.__class__.__name__,
            'error_id': getattr(logger, 'current_request_id', None)
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
        except ApplicationError as application_error:
            return error_response(
                error=application_error,
                msg=f'function = {func.__name__} , error = {application_error}',
                status_code=application_error.STATUS_CODE)
        except Exception as exception:
            return error_response(
                error=exception,
                msg=f'function = {func.__name__}, error = {exception}',
                status_code=http500)
    return result


def log_start_finish(func: Callable):
    @functools.wraps(func)
    def result(*args, **kwargs):
        logger.info(f'{func.__name__} ::: started')
        response = func(*args, **kwargs)
        logger.info(f'{func.__name__} ::: finished')
        return response
    return result
