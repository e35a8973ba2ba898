from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from typing import List
import json
import logging

from .models import StreamRequest, ExtractRequestBody, ExtractResponse, HealthResponse
from ..core.errors import PluginError, UnknownField
from ..core.fields import FieldDescriptor
from ..core.plugin import PluginInfo, SourcePlugin
from ..core.registry import PluginRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def _create_plugin(name: str, raw_config=None) -> SourcePlugin:
    try:
        return PluginRegistry.create_plugin(name, raw_config)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PluginError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=HealthResponse)
async def health_check():
    return HealthResponse(plugins_available=len(PluginRegistry.list_plugins()))


@router.get("/plugins", response_model=List[PluginInfo])
async def list_plugins():
    return [_create_plugin(name).info() for name in PluginRegistry.list_plugins()]


@router.get("/plugins/{plugin_name}/fields", response_model=List[FieldDescriptor])
async def list_fields(plugin_name: str):
    return _create_plugin(plugin_name).describe_fields()


@router.post("/plugins/{plugin_name}/stream")
async def stream_events(plugin_name: str, request: StreamRequest):
    plugin = _create_plugin(plugin_name, request.config)
    try:
        session = plugin.open(request.params)
    except PluginError as e:
        raise HTTPException(status_code=400, detail=str(e))

    async def generate_stream():
        try:
            async for event in session.stream(request.batch_size):
                record = {
                    "timestamp": event.timestamp,
                    "payload": event.text,
                    "rendered": plugin.render_event(event.payload),
                }
                yield f"data: {json.dumps(record)}\n\n"
        finally:
            session.close()
            plugin.destroy()

    return StreamingResponse(
        generate_stream(),
        media_type="text/plain",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


@router.post("/plugins/{plugin_name}/extract", response_model=ExtractResponse)
async def extract_field(plugin_name: str, request: ExtractRequestBody):
    plugin = _create_plugin(plugin_name)

    if isinstance(request.field, int):
        field_id, field_name = request.field, str(request.field)
    else:
        descriptor = plugin.field_by_name(request.field)
        if descriptor is None:
            raise HTTPException(status_code=400, detail=str(UnknownField(request.field)))
        field_id, field_name = descriptor.id, descriptor.name

    try:
        value = plugin.extract_field(field_id, request.arg, request.payload)
    except PluginError as e:
        logger.info("Extraction of %s failed: %s", field_name, e)
        raise HTTPException(status_code=400, detail=str(e))

    return ExtractResponse(field=field_name, value=value)
