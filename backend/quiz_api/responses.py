"""Response envelope helpers.

Every API response body has the shape `{success, message, data?}`;
`data` is omitted when there is nothing to return. Error messages are
joined with ", ".
"""

from typing import Any, Iterable

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

_NO_DATA = object()


def send_response(status_code: int, success: bool, message: str = '', data: Any = _NO_DATA) -> JSONResponse:
    body = {'success': success, 'message': message}
    if data is not _NO_DATA and data is not None:
        body['data'] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=body)


def send_successful(message: str, data: Any = _NO_DATA) -> JSONResponse:
    return send_response(200, True, message, data)


def send_created(message: str, data: Any = _NO_DATA) -> JSONResponse:
    return send_response(201, True, message, data)


def send_error(status_code: int, errors: Iterable[str] = ()) -> JSONResponse:
    return send_response(status_code, False, ', '.join(errors))
