"""FastAPIアプリケーション。

体重記録の一覧・追加・削除・全削除API。
"""

import math
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from weight_tracker.analysis.summary import is_valid_record, short_label, summarize
from weight_tracker.dependencies import get_record_service, get_tenancy_resolver
from weight_tracker.interfaces.errors import (
    InvalidInput,
    NotAuthenticated,
    StoreUnavailable,
)
from weight_tracker.interfaces.record_store import Identity, Record
from weight_tracker.service.record_service import RecordService, removal_target
from weight_tracker.service.tenancy import TenancyResolver

ServiceDep = Annotated[RecordService, Depends(get_record_service)]
ResolverDep = Annotated[TenancyResolver, Depends(get_tenancy_resolver)]

app = FastAPI(
    title="Weight Tracker API",
    version="0.1.0",
)


# ---------- Pydantic モデル ----------


class WeightCreateRequest(BaseModel):
    """POST /api/weights のリクエストボディ。

    検証は RecordService で行うので、ここでは欠落を許す。
    """

    date: str | None = None
    weight: float | str | None = None


class WeightDeleteRequest(BaseModel):
    """DELETE /api/weights のリクエストボディ。

    weight は数値でない値も受け付け、削除時に NaN として扱う。
    """

    date: str | None = None
    weight: Any = None
    id: str | None = None


class RecordResponse(BaseModel):
    """1件の体重記録レスポンス。

    保存値が数値でない体重は null、不正な記録は valid=false。
    """

    id: str | None
    date: str
    weight: float | None
    label: str
    valid: bool


class SummaryResponse(BaseModel):
    min_weight: float
    max_weight: float
    count: int


# ---------- ヘルパー ----------


def get_identity(
    x_user_id: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """X-User-Id ヘッダからサインイン中のユーザーを得る。"""
    if not x_user_id:
        return None
    return Identity(uid=x_user_id)


IdentityDep = Annotated[Identity | None, Depends(get_identity)]


def _to_record_response(record: Record) -> RecordResponse:
    valid = is_valid_record(record)
    weight = None if math.isnan(record.weight) else record.weight
    return RecordResponse(
        id=record.id,
        date=record.date,
        weight=weight,
        label=short_label(record.date),
        valid=valid,
    )


async def _read_delete_body(request: Request) -> WeightDeleteRequest:
    """1件削除のリクエストボディを読み込む。date と weight のキーは必須。"""
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInput("Malformed request body") from None
    try:
        body = WeightDeleteRequest.model_validate(payload)
    except ValidationError:
        raise InvalidInput("Malformed request body") from None
    if "weight" not in body.model_fields_set:
        raise InvalidInput("date and weight are required to delete a record")
    return body


# ---------- 例外ハンドラ ----------


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Malformed request body"})


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    return JSONResponse(status_code=401, content={"error": str(exc)})


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    # 原因は RecordService でログ出力済み。利用者には汎用メッセージのみ返す
    return JSONResponse(status_code=500, content={"error": str(exc)})


# ---------- エンドポイント ----------


@app.get("/api/health")
async def health_check():
    """ヘルスチェック。"""
    return {"status": "ok"}


@app.get("/api/weights")
async def get_weights(
    service: ServiceDep,
    resolver: ResolverDep,
    identity: IdentityDep,
):
    """体重記録を日付昇順で取得する。"""
    records = await service.list_records(resolver.resolve(identity))
    summary = summarize(records)
    return {
        "records": [_to_record_response(r) for r in records],
        "summary": SummaryResponse(
            min_weight=summary.min_weight,
            max_weight=summary.max_weight,
            count=summary.count,
        ),
    }


@app.post("/api/weights", status_code=201)
async def post_weight(
    body: WeightCreateRequest,
    service: ServiceDep,
    resolver: ResolverDep,
    identity: IdentityDep,
):
    """体重記録を1件追加する。"""
    scope = resolver.resolve(identity)
    record = await service.add_record(scope, body.date, body.weight)
    return {"message": "Weight saved", "record": _to_record_response(record)}


@app.delete("/api/weights")
async def delete_weights(
    service: ServiceDep,
    resolver: ResolverDep,
    identity: IdentityDep,
    request: Request,
    clear_all: Annotated[bool, Query(alias="all")] = False,
):
    """体重記録を1件削除する。?all=true ならボディを読まずに全削除する。"""
    scope = resolver.resolve(identity)
    if clear_all:
        await service.clear_records(scope)
        return {"message": "All records deleted"}

    body = await _read_delete_body(request)
    target = removal_target(body.date, body.weight, body.id)
    await service.remove_record(scope, target)
    return {"message": "Record removed"}
