from django.conf import settings
from django.core.paginator import EmptyPage, Page
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination

from .responses import envelope


def _positive_int(raw, field: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({field: f"{field} must be an integer."})
    if value < 1:
        raise ValidationError({field: f"{field} must be positive."})
    return value


class PageLimitPagination(PageNumberPagination):
    """
    ``?page=1&limit=20`` 페이지네이션.
    정렬 키(created_at 또는 reply_created_at + id)는 호출 측 queryset이 보장한다.
    동시 삽입 시 페이지 사이 누락/중복은 허용.
    """

    page_size = 20
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = getattr(settings, "PAGINATION_MAX_LIMIT", 100)

    def get_page_size(self, request):
        raw = request.query_params.get(self.page_size_query_param)
        if raw is None:
            return self.page_size
        return min(_positive_int(raw, self.page_size_query_param), self.max_page_size)

    def get_page_number(self, request, paginator):
        return _positive_int(request.query_params.get(self.page_query_param, 1), self.page_query_param)

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        paginator = self.django_paginator_class(queryset, self.get_page_size(request))
        number = self.get_page_number(request, paginator)
        try:
            self.page = paginator.page(number)
        except EmptyPage:
            # 범위를 벗어난 페이지는 404 대신 빈 목록
            self.page = Page([], number, paginator)
        return list(self.page)

    def get_pagination_meta(self) -> dict:
        paginator = self.page.paginator
        return {
            "current": self.page.number,
            "total": paginator.num_pages if paginator.count else 0,
            "count": len(self.page.object_list),
        }

    def get_paginated_response(self, data, *, key="results", message="OK", **extra):
        return envelope(message, {key: data, **extra, "pagination": self.get_pagination_meta()})
