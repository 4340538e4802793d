"""
Mux Webhook Schemas

The three webhook variants the video engine consumes, decoded as a
discriminated union on ``type``. Field names follow Mux's payloads.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _MuxData(BaseModel):
    # Mux sends many more fields than we read
    model_config = ConfigDict(extra="ignore")


class UploadAssetCreatedData(_MuxData):
    id: str  # upload id
    asset_id: str


class PlaybackIdRef(_MuxData):
    id: str
    policy: Optional[str] = None


class AssetReadyData(_MuxData):
    id: str  # asset id
    playback_ids: List[PlaybackIdRef] = []
    duration: Optional[float] = None
    upload_id: Optional[str] = None


class AssetErroredData(_MuxData):
    id: str  # asset id
    upload_id: Optional[str] = None


class UploadAssetCreated(_MuxData):
    type: Literal["video.upload.asset_created"]
    data: UploadAssetCreatedData


class AssetReady(_MuxData):
    type: Literal["video.asset.ready"]
    data: AssetReadyData


class AssetErrored(_MuxData):
    type: Literal["video.asset.errored"]
    data: AssetErroredData


MuxWebhookEvent = Annotated[
    Union[UploadAssetCreated, AssetReady, AssetErrored],
    Field(discriminator="type"),
]

mux_webhook_adapter: TypeAdapter[MuxWebhookEvent] = TypeAdapter(MuxWebhookEvent)

HANDLED_EVENT_TYPES = frozenset(
    {
        "video.upload.asset_created",
        "video.asset.ready",
        "video.asset.errored",
    }
)
