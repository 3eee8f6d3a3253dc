"""Redmine pass-through routes.

所有接口都经过 CredentialGatedFetcher：未登录返回 401，未配置凭据和
凭据被自动清除分别返回 409 REDMINE_NOT_CONFIGURED / REDMINE_CREDENTIALS_RESET。
"""

from datetime import date

from fastapi import APIRouter, Depends, Path, Query

from src.core.application.security import get_optional_user_id
from src.core.domain.exceptions import ValidationError
from src.core.interfaces.http.response import ApiResponse
from src.modules.credentials.domain.exceptions import (
    RedmineCredentialsResetError,
    RedmineNotConfiguredError,
)
from src.modules.redmine.application.dependencies import (
    get_redmine_query_service,
    get_time_entry_service,
)
from src.modules.redmine.application.gated_fetcher import GatedResult, GatedStatus
from src.modules.redmine.application.services import (
    RedmineQueryService,
    TimeEntryService,
)
from src.modules.redmine.domain.models import (
    Activity,
    Issue,
    Project,
    TimeEntryInput,
    TimeEntrySummary,
)
from src.modules.redmine.interfaces.schemas import (
    BulkFailureResponse,
    BulkTimeEntryRequest,
    BulkTimeEntryResponse,
    ConnectionTestResponse,
    TimeEntryListResponse,
)

router = APIRouter(prefix="/redmine", tags=["redmine"])


def _unwrap[T](result: GatedResult[T]) -> T:
    if result.status is GatedStatus.NOT_CONFIGURED:
        raise RedmineNotConfiguredError()
    if result.status is GatedStatus.CREDENTIALS_RESET:
        raise RedmineCredentialsResetError()
    return result.data


@router.get(
    "/projects",
    response_model=ApiResponse[list[Project]],
    summary="获取 Redmine 项目列表",
)
async def list_projects(
    user_id: str | None = Depends(get_optional_user_id),
    service: RedmineQueryService = Depends(get_redmine_query_service),
) -> ApiResponse[list[Project]]:
    projects = _unwrap(await service.list_projects(user_id))
    return ApiResponse.success(data=projects)


@router.get(
    "/activities",
    response_model=ApiResponse[list[Activity]],
    summary="获取工时活动类型",
)
async def list_activities(
    user_id: str | None = Depends(get_optional_user_id),
    service: RedmineQueryService = Depends(get_redmine_query_service),
) -> ApiResponse[list[Activity]]:
    activities = _unwrap(await service.list_activities(user_id))
    return ApiResponse.success(data=activities)


@router.get(
    "/projects/{project_id}/issues",
    response_model=ApiResponse[list[Issue]],
    summary="获取项目下未关闭的问题",
)
async def list_project_issues(
    project_id: int = Path(..., ge=1),
    user_id: str | None = Depends(get_optional_user_id),
    service: RedmineQueryService = Depends(get_redmine_query_service),
) -> ApiResponse[list[Issue]]:
    issues = _unwrap(await service.list_open_issues(user_id, project_id))
    return ApiResponse.success(data=issues)


@router.get(
    "/time-entries",
    response_model=ApiResponse[TimeEntryListResponse],
    summary="获取当前用户的工时记录",
)
async def list_time_entries(
    date_from: date = Query(..., alias="from", description="开始日期"),
    date_to: date = Query(..., alias="to", description="结束日期"),
    user_id: str | None = Depends(get_optional_user_id),
    service: RedmineQueryService = Depends(get_redmine_query_service),
) -> ApiResponse[TimeEntryListResponse]:
    if date_to < date_from:
        raise ValidationError("'to' must not be earlier than 'from'")

    entries = _unwrap(
        await service.list_time_entries(
            user_id, date_from.isoformat(), date_to.isoformat()
        )
    )
    return ApiResponse.success(
        data=TimeEntryListResponse(
            entries=entries, summary=TimeEntrySummary.from_entries(entries)
        )
    )


@router.post(
    "/time-entries/bulk",
    response_model=ApiResponse[BulkTimeEntryResponse],
    summary="批量创建工时记录",
    description="逐条写入 Redmine，返回成功和失败的明细",
)
async def create_time_entries(
    request: BulkTimeEntryRequest,
    user_id: str | None = Depends(get_optional_user_id),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> ApiResponse[BulkTimeEntryResponse]:
    outcome = _unwrap(await service.create_bulk(user_id, request.entries))
    response = BulkTimeEntryResponse(
        created=outcome.created,
        failed=[
            BulkFailureResponse(
                index=failure.index,
                code=failure.error.error_code,
                message=failure.error.message,
                messages=failure.error.messages,
            )
            for failure in outcome.failed
        ],
        total_hours=sum(entry.hours for entry in outcome.created),
    )
    message = f"{len(outcome.created)} of {len(request.entries)} time entries created"
    return ApiResponse.success(data=response, message=message)


@router.put(
    "/time-entries/{entry_id}",
    response_model=ApiResponse[None],
    summary="更新工时记录",
)
async def update_time_entry(
    entry: TimeEntryInput,
    entry_id: int = Path(..., ge=1),
    user_id: str | None = Depends(get_optional_user_id),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> ApiResponse[None]:
    _unwrap(await service.update(user_id, entry_id, entry))
    return ApiResponse.success(message="Time entry updated")


@router.delete(
    "/time-entries/{entry_id}",
    response_model=ApiResponse[None],
    summary="删除工时记录",
)
async def delete_time_entry(
    entry_id: int = Path(..., ge=1),
    user_id: str | None = Depends(get_optional_user_id),
    service: TimeEntryService = Depends(get_time_entry_service),
) -> ApiResponse[None]:
    _unwrap(await service.delete(user_id, entry_id))
    return ApiResponse.success(message="Time entry deleted")


@router.post(
    "/connection/test",
    response_model=ApiResponse[ConnectionTestResponse],
    summary="测试 Redmine 连接",
    description="使用已保存的凭据重新校验一次",
)
async def test_connection(
    user_id: str | None = Depends(get_optional_user_id),
    service: RedmineQueryService = Depends(get_redmine_query_service),
) -> ApiResponse[ConnectionTestResponse]:
    account = _unwrap(await service.test_connection(user_id))
    return ApiResponse.success(
        data=ConnectionTestResponse(redmine_user_id=str(account.id), login=account.login)
    )
