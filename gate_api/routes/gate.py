"""
게이트 라우터

방문자가 승인된 봇(쿼리 파라미터)이거나 이미 승인 쿠키를 가진 경우
랜딩 페이지를 렌더링하고 쿠키를 갱신하며, 그 외에는 외부 URL로 리다이렉트합니다.
"""

import re

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from gate_config import TenantPolicy

from ..dependencies import get_tenant_policy, get_templates

router = APIRouter(
    tags=["Gate"],
    dependencies=[Depends(get_tenant_policy)],
)

# 승인 쿠키 유효기간 (1년)
COOKIE_MAX_AGE = 365 * 24 * 60 * 60

LANDING_TEMPLATE = "index.html"

_PAGE_ID_PATTERN = re.compile(r"[+-]?\d+")


def _gate_response(
    request: Request,
    policy: TenantPolicy,
    templates: Jinja2Templates,
) -> Response:
    """리다이렉트 또는 랜딩 페이지 응답 생성"""
    bot_value = request.query_params.get(policy.expect_bot_param, "")
    cookie = request.cookies.get(policy.bot_cookie_name, "")

    if not policy.is_approved(bot_value, cookie):
        return RedirectResponse(policy.base_redirect_url, status_code=302)

    response = templates.TemplateResponse(
        request,
        LANDING_TEMPLATE,
        policy.render_context().as_template_vars(),
    )
    if policy.bot_cookie_name:
        response.set_cookie(
            key=policy.bot_cookie_name,
            value=policy.bot_cookie_value,
            max_age=COOKIE_MAX_AGE,
            expires=COOKIE_MAX_AGE,
        )
    return response


@router.get("/", include_in_schema=False)
async def landing(
    request: Request,
    policy: TenantPolicy = Depends(get_tenant_policy),
    templates: Jinja2Templates = Depends(get_templates),
) -> Response:
    return _gate_response(request, policy, templates)


@router.get("/index{page_id}.html", include_in_schema=False)
async def landing_page(
    page_id: str,
    request: Request,
    policy: TenantPolicy = Depends(get_tenant_policy),
    templates: Jinja2Templates = Depends(get_templates),
) -> Response:
    """번호가 붙은 랜딩 페이지 (/index3.html 등)

    번호가 정수가 아니면 / 로 리다이렉트합니다.
    """
    if not _PAGE_ID_PATTERN.fullmatch(page_id):
        return RedirectResponse("/", status_code=302)
    return _gate_response(request, policy, templates)
