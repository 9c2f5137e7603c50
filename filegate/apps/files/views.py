"""JSON endpoints for the files app.

Views only translate HTTP to the logic layer and back. The caller's
identity comes from Django's authentication middleware.
"""

import logging
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus
from typing import Any

from django.core.exceptions import ValidationError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods

from filegate.apps.files.exceptions import (
    InvalidPaginationError,
    QuotaExceededError,
    StorageUnavailableError,
)
from filegate.apps.files.logic import (
    file_operations,
    listing_operations,
    quota_operations,
)
from filegate.apps.files.models import File

_View = Callable[..., HttpResponse]

logger = logging.getLogger(__name__)


def _error(status: HTTPStatus, error: str, message: str, **extra: Any) -> JsonResponse:
    return JsonResponse(
        {'error': error, 'message': message, **extra},
        status=status,
    )


def api_view(view: _View) -> _View:
    """Require an authenticated user and map domain errors to responses."""

    @wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        if not request.user.is_authenticated:
            return _error(
                HTTPStatus.UNAUTHORIZED,
                'UNAUTHORIZED',
                'Authentication required',
            )
        try:
            return view(request, *args, **kwargs)
        except File.DoesNotExist:
            return _error(
                HTTPStatus.NOT_FOUND,
                'RESOURCE_NOT_FOUND',
                'File not found',
            )
        except QuotaExceededError as error:
            return _error(
                HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
                'STORAGE_QUOTA_EXCEEDED',
                str(error),
                used_bytes=error.used_bytes,
                max_bytes=error.quota_bytes,
                required_bytes=error.required_bytes,
            )
        except ValidationError as error:
            logger.info('Rejected request: %s', error.messages[0])
            return _error(
                HTTPStatus.BAD_REQUEST,
                (error.code or 'invalid').upper(),
                error.messages[0],
            )
        except StorageUnavailableError:
            logger.exception('Object storage unavailable')
            return _error(
                HTTPStatus.SERVICE_UNAVAILABLE,
                'STORAGE_UNAVAILABLE',
                'File storage is temporarily unavailable',
            )

    return wrapper


@require_http_methods(['GET', 'POST'])
@api_view
def file_collection(request: HttpRequest) -> HttpResponse:
    """List files (GET) or upload a new one (POST, multipart 'file')."""
    if request.method == 'POST':
        return _upload(request)

    page = listing_operations.list_files(
        request.user.pk,
        page=_int_param(request, 'page', 0),
        size=_int_param(request, 'size', listing_operations.DEFAULT_PAGE_SIZE),
        content_type=request.GET.get('content_type'),
        search=request.GET.get('search'),
    )
    return JsonResponse(page.as_dict())


def _upload(request: HttpRequest) -> HttpResponse:
    uploaded = request.FILES.get('file')
    if uploaded is None:
        return _error(
            HTTPStatus.BAD_REQUEST,
            'MISSING_FILE',
            "Multipart field 'file' is required",
        )

    created = file_operations.upload_file(
        request.user.pk,
        content=uploaded.read(),
        content_type=uploaded.content_type,
        filename=uploaded.name,
        size_bytes=uploaded.size,
    )
    return JsonResponse(created.as_dict(), status=HTTPStatus.CREATED)


def _int_param(request: HttpRequest, name: str, default: int) -> int:
    raw = request.GET.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise InvalidPaginationError(
            f"Query parameter '{name}' must be an integer",
        ) from error


@require_http_methods(['GET', 'DELETE'])
@api_view
def file_detail(request: HttpRequest, file_id: int) -> HttpResponse:
    """Show (GET) or delete (DELETE) one of the caller's files."""
    if request.method == 'DELETE':
        file_operations.delete_file(request.user.pk, file_id)
        return HttpResponse(status=HTTPStatus.NO_CONTENT)

    return JsonResponse(
        listing_operations.get_file(request.user.pk, file_id).as_dict(),
    )


@require_GET
@api_view
def file_download(request: HttpRequest, file_id: int) -> HttpResponse:
    """Issue a presigned download URL."""
    link = file_operations.get_download_url(request.user.pk, file_id)
    return JsonResponse(link.as_dict())


@require_GET
@api_view
def file_stats(request: HttpRequest) -> HttpResponse:
    """File count and total size of the caller."""
    return JsonResponse(
        listing_operations.get_file_stats(request.user.pk).as_dict(),
    )


@require_GET
@api_view
def storage_usage(request: HttpRequest) -> HttpResponse:
    """Used and maximum storage of the caller."""
    return JsonResponse(
        quota_operations.get_usage_info(request.user.pk).as_dict(),
    )
