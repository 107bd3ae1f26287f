"""
HTTP handler for the user resource.

Decodes requests into users and filters, calls the service and maps
write outcomes to HTTP status codes:

- load: 200 found, 404 absent
- create: 201 inserted, 409 duplicate
- update/patch: 200 matched, 404 absent, 409 duplicate
- delete: 200 deleted, 404 absent
- 422 for field validation errors, 400 for malformed input, 500 otherwise
"""

import json
from typing import Any, Dict, List

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from api.src.errors import FilterDecodeError, SearchValidationError, ValidatorError
from api.src.models.common import ErrorMessage, SearchResult, WriteResult, WriteStatus
from api.src.models.user import User, UserFilter
from api.src.search.decoder import decode_body, decode_query_params, iter_query_items
from api.src.services.user_service import UserService
from api.src.validation import UserValidator

INTERNAL_SERVER_ERROR = "Internal Server Error"
ID_EMPTY = "Id cannot be empty"
ID_NOT_MATCH = "Id not match"

_WRITE_STATUS = {
    WriteStatus.OK: status.HTTP_200_OK,
    WriteStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    WriteStatus.CONFLICT: status.HTTP_409_CONFLICT,
}


class BadRequest(Exception):
    """Request cannot be decoded; reported as 400 with the message."""


def _dump(user: User) -> Dict[str, Any]:
    return user.model_dump(mode="json", exclude_none=True)


def _errors(errors: List[ErrorMessage]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=[e.model_dump() for e in errors],
    )


def _internal_error() -> PlainTextResponse:
    return PlainTextResponse(INTERNAL_SERVER_ERROR, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _bad_request(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status.HTTP_400_BAD_REQUEST)


async def read_json_object(request: Request, allow_empty: bool = False) -> Dict[str, Any]:
    """
    Read the request body as a JSON object.

    Raises:
        BadRequest: If the body is empty, not JSON, or not an object
    """
    raw = await request.body()
    if not raw.strip():
        if allow_empty:
            return {}
        raise BadRequest("Request body cannot be empty")
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BadRequest(f"Invalid JSON body: {e}") from e
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload


def match_id(path_id: str, body: Dict[str, Any], key_field: str = "id") -> None:
    """
    Apply the path id to a body: fill it in when absent, reject a mismatch.

    Raises:
        BadRequest: If the body carries a different id
    """
    body_id = body.get(key_field)
    if body_id is None or body_id == "":
        body[key_field] = path_id
    elif body_id != path_id:
        raise BadRequest(ID_NOT_MATCH)


class UserHandler:
    """Handler for the /users endpoints."""

    def __init__(self, service: UserService, validator: UserValidator, logger, key_field: str = "id"):
        """
        Initialize user handler.

        Args:
            service: User service
            validator: Payload validator
            logger: Structured logger for internal errors
            key_field: Name of the id field in request bodies
        """
        self.service = service
        self.validator = validator
        self.logger = logger
        self.key_field = key_field
        self.patchable = frozenset(User.model_fields) - {key_field}

    def _write_response(self, result: WriteResult, body: Any, success_status: int = status.HTTP_200_OK) -> Response:
        if result.status == WriteStatus.OK:
            return JSONResponse(status_code=success_status, content=body)
        return JSONResponse(status_code=_WRITE_STATUS[result.status], content=result.count)

    async def all(self, request: Request) -> Response:
        try:
            users = await self.service.all()
        except Exception as e:
            self.logger.error("user_list_failed", error=str(e))
            return _internal_error()
        return JSONResponse(content=[_dump(u) for u in users])

    async def load(self, request: Request, user_id: str) -> Response:
        if not user_id.strip():
            return _bad_request(ID_EMPTY)

        try:
            user = await self.service.load(user_id)
        except Exception as e:
            self.logger.error("user_load_failed", user_id=user_id, error=str(e))
            return _internal_error()

        if user is None:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=None)
        return JSONResponse(content=_dump(user))

    async def create(self, request: Request) -> Response:
        try:
            body = await read_json_object(request)
        except BadRequest as e:
            return _bad_request(str(e))

        try:
            user, errors = self.validator.validate(body)
        except ValidatorError as e:
            self.logger.error("user_validate_failed", error=str(e))
            return _internal_error()
        if errors:
            return _errors(errors)

        try:
            result = await self.service.create(user)
        except Exception as e:
            self.logger.error("user_create_failed", user_id=user.id, error=str(e))
            return _internal_error()

        return self._write_response(result, _dump(user), status.HTTP_201_CREATED)

    async def update(self, request: Request, user_id: str) -> Response:
        try:
            body = await read_json_object(request)
            if not user_id.strip():
                raise BadRequest(ID_EMPTY)
            match_id(user_id, body, self.key_field)
        except BadRequest as e:
            return _bad_request(str(e))

        try:
            user, errors = self.validator.validate(body)
        except ValidatorError as e:
            self.logger.error("user_validate_failed", user_id=user_id, error=str(e))
            return _internal_error()
        if errors:
            return _errors(errors)

        try:
            result = await self.service.update(user)
        except Exception as e:
            self.logger.error("user_update_failed", user_id=user_id, error=str(e))
            return _internal_error()

        return self._write_response(result, _dump(user))

    async def patch(self, request: Request, user_id: str) -> Response:
        if not user_id.strip():
            return _bad_request(ID_EMPTY)

        try:
            body = await read_json_object(request)
            match_id(user_id, body, self.key_field)
        except BadRequest as e:
            return _bad_request(str(e))

        # Keys present in the body are the fields to write; unknown keys are dropped.
        fields = {k: v for k, v in body.items() if k in self.patchable}

        try:
            values, errors = self.validator.validate_patch(fields)
        except ValidatorError as e:
            self.logger.error("user_validate_failed", user_id=user_id, error=str(e))
            return _internal_error()
        if errors:
            return _errors(errors)

        try:
            result = await self.service.patch(user_id, values)
        except Exception as e:
            self.logger.error("user_patch_failed", user_id=user_id, error=str(e))
            return _internal_error()

        applied = {self.key_field: user_id, **values}
        return self._write_response(result, jsonable_encoder(applied))

    async def delete(self, request: Request, user_id: str) -> Response:
        if not user_id.strip():
            return _bad_request(ID_EMPTY)

        try:
            result = await self.service.delete(user_id)
        except Exception as e:
            self.logger.error("user_delete_failed", user_id=user_id, error=str(e))
            return _internal_error()

        return self._write_response(result, result.count)

    async def search(self, request: Request) -> Response:
        try:
            if request.method == "GET":
                flt = decode_query_params(iter_query_items(request.query_params), UserFilter)
            else:
                flt = decode_body(await read_json_object(request, allow_empty=True), UserFilter)
        except (BadRequest, FilterDecodeError) as e:
            return _bad_request(str(e))

        try:
            users, total = await self.service.search(flt)
        except SearchValidationError as e:
            return _errors(e.errors)
        except Exception as e:
            self.logger.error(
                "user_search_failed",
                filter=flt.model_dump(mode="json", exclude_none=True),
                error=str(e)
            )
            return _internal_error()

        page = SearchResult[User](list=users, total=total)
        return JSONResponse(content=page.model_dump(mode="json", exclude_none=True))

