"""数据模型测试：数据库字段别名与校验。"""
import pytest
from pydantic import ValidationError

from smart_collar.notify.models import NotificationRecord
from smart_collar.pets.models import Geofence, MetricKind, NotificationSettings


def test_settings_aliases() -> None:
    s = NotificationSettings.model_validate({
        "heartRateAlertEnabled": True,
        "minHeartRate": 60,
        "maxHeartRate": 180,
        "tempAlert": False,
        "maxTemp": 39.5,
        "petName": "ignored",
    })
    assert s.enabled_for(MetricKind.BPM)
    assert not s.enabled_for(MetricKind.TEMPERATURE)
    assert s.bounds_for(MetricKind.BPM) == (60, 180)
    assert s.bounds_for(MetricKind.TEMPERATURE) == (None, 39.5)


def test_settings_default_disabled() -> None:
    s = NotificationSettings.model_validate({})
    assert not s.enabled_for(MetricKind.BPM)
    assert s.bounds_for(MetricKind.BPM) == (None, None)


def test_geofence_aliases_and_ranges() -> None:
    fence = Geofence.model_validate({"centerLatitude": 1.3, "centerLongitude": 103.8, "radiusMeters": 50})
    assert (fence.center_latitude, fence.center_longitude, fence.radius_meters) == (1.3, 103.8, 50)
    with pytest.raises(ValidationError):
        Geofence.model_validate({"latitude": 91, "longitude": 0, "radius": 10})
    with pytest.raises(ValidationError):
        Geofence.model_validate({"latitude": 0, "longitude": 0, "radius": -1})


def test_notification_record_store_shape() -> None:
    record = NotificationRecord(title="t", message="m", timestamp=1, kind="geofence")
    assert record.to_store() == {
        "title": "t",
        "message": "m",
        "timestamp": 1,
        "type": "geofence",
        "source": "server",
    }
    assert NotificationRecord(title="t", message="m", timestamp=1, pet_id="p1").to_store()["petId"] == "p1"


def test_null_switch_only_disables_that_metric() -> None:
    s = NotificationSettings.model_validate({"heartRateAlert": None, "tempAlert": True, "maxTemp": 39.5})
    assert not s.enabled_for(MetricKind.BPM)
    assert s.enabled_for(MetricKind.TEMPERATURE)
