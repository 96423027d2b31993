"""HTTP 接口（FastAPI）：遥测上报与调试查询，只做请求/响应转换。"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from smart_collar.exceptions import StoreError
from smart_collar.monitor import CollarMonitor
from smart_collar.store.base import TreeStore
from smart_collar.store.paths import settings_path

logger = logging.getLogger(__name__)


class ReadingRequest(BaseModel):
    uid: str = Field(..., min_length=1)
    pet_id: str = Field(..., alias="petId", min_length=1)
    value: float

    model_config = ConfigDict(populate_by_name=True)


class LocationRequest(BaseModel):
    uid: str = Field(..., min_length=1)
    pet_id: str = Field(..., alias="petId", min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = ConfigDict(populate_by_name=True)


def create_app(monitor: CollarMonitor, store: TreeStore, lifespan: Any = None) -> FastAPI:
    app = FastAPI(title="SmartCollar API", lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "SmartCollar API is running ✅"

    @app.get("/testNotif")
    async def test_notif(uid: Optional[str] = None, petId: Optional[str] = None) -> Any:
        if not uid or not petId:
            raise HTTPException(status_code=400, detail="Missing uid or petId")
        try:
            settings = await store.get(settings_path(uid, petId))
        except StoreError as e:
            logger.exception("读取告警配置失败 %s/%s", uid, petId)
            raise HTTPException(status_code=500, detail=str(e)) from e
        if settings is None:
            raise HTTPException(status_code=404, detail="No notification settings found")
        return settings

    @app.post("/bpm")
    async def bpm(payload: ReadingRequest) -> dict:
        outcome = await monitor.on_bpm_update(payload.uid, payload.pet_id, payload.value)
        return {"status": "ok", "outcome": outcome.value}

    @app.post("/temperature")
    async def temperature(payload: ReadingRequest) -> dict:
        outcome = await monitor.on_temperature_update(payload.uid, payload.pet_id, payload.value)
        return {"status": "ok", "outcome": outcome.value}

    @app.post("/location")
    async def location(payload: LocationRequest) -> dict:
        outcome = await monitor.on_location_update(payload.uid, payload.pet_id, payload.latitude, payload.longitude)
        return {"status": "ok", "outcome": outcome.value}

    return app
