"""FastAPI application and router for the codeplug manager."""

from __future__ import annotations

import io
import logging
import zipfile
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from .codecs import ARCHIVE_DIALECTS, AUTO, get_codec
from .exceptions import CodeplugError, NotFoundError, UnknownDialectError
from .models.enums import EntityKind
from .models.records import Channel, Contact, RoamingChannel
from .orchestrator import CodeplugOrchestrator
from .repository import get_engine
from .schemas import (
    AssignRequest,
    ChannelCreate,
    ChannelRead,
    CollectionCreate,
    CollectionRead,
    ContactCreate,
    ContactListRead,
    ContactRead,
    JobAccepted,
    ProgressRead,
    ReorderRequest,
    RoamingChannelCreate,
    RoamingChannelRead,
)
from .services import CodeplugService
from .settings import Settings, load_settings
from .worker import ImportWorker
from .ws import ProgressHub
from .ws import router as ws_router

logger = logging.getLogger(__name__)

router = APIRouter()
router.include_router(ws_router)

_COLLECTION_PATHS = {
    "zones": EntityKind.ZONES,
    "scanlists": EntityKind.SCAN_LISTS,
    "roaming/zones": EntityKind.ROAMING_ZONES,
}


# Dependency helpers -------------------------------------------------------

def get_service(request: Request) -> CodeplugService:
    return request.app.state.service


def get_worker(request: Request) -> ImportWorker:
    return request.app.state.worker


# Channels -----------------------------------------------------------------

@router.get("/channels", response_model=List[ChannelRead])
def list_channels(service: CodeplugService = Depends(get_service)):
    return service.list_channels()


@router.post("/channels", response_model=ChannelRead)
def create_channel(payload: ChannelCreate, service: CodeplugService = Depends(get_service)):
    return service.save_channel(Channel(**payload.model_dump()))


@router.put("/channels/{channel_id}", response_model=ChannelRead)
def update_channel(channel_id: int, payload: ChannelCreate, service: CodeplugService = Depends(get_service)):
    current = service.get_channel(channel_id)
    channel = Channel(**payload.model_dump(), id=channel_id)
    channel.sort_order = current.sort_order
    return service.save_channel(channel)


@router.delete("/channels/{channel_id}")
def delete_channel(channel_id: int, service: CodeplugService = Depends(get_service)):
    service.delete_channel(channel_id)
    return {"deleted": channel_id}


@router.post("/channels/reorder")
def reorder_channels(payload: ReorderRequest, service: CodeplugService = Depends(get_service)):
    mapping = service.reorder_channels(payload.ids)
    return {"mapping": {str(old): new for old, new in mapping.items()}}


@router.post("/channels/fix-bandwidth")
def fix_bandwidth(service: CodeplugService = Depends(get_service)):
    return {"changed": service.fix_bandwidths()}


# Contacts -----------------------------------------------------------------

@router.get("/contacts", response_model=List[ContactRead])
def list_contacts(service: CodeplugService = Depends(get_service)):
    return service.list_contacts()


@router.post("/contacts", response_model=ContactRead)
def create_contact(payload: ContactCreate, service: CodeplugService = Depends(get_service)):
    return service.save_contact(Contact(**payload.model_dump()))


@router.delete("/contacts/{contact_id}")
def delete_contact(contact_id: int, service: CodeplugService = Depends(get_service)):
    service.delete_contact(contact_id)
    return {"deleted": contact_id}


# Zones / scan lists / roaming zones ---------------------------------------

def _register_collection_routes(path: str, kind: EntityKind) -> None:
    @router.get(f"/{path}", response_model=List[CollectionRead], name=f"list_{kind.value}")
    def list_collections(service: CodeplugService = Depends(get_service)):
        return service.list_collections(kind)

    @router.post(f"/{path}", response_model=CollectionRead, name=f"create_{kind.value}")
    def create_collection(payload: CollectionCreate, service: CodeplugService = Depends(get_service)):
        collection_id = service.create_collection(kind, payload.name, payload.member_ids)
        return next(c for c in service.list_collections(kind) if c.id == collection_id)

    @router.delete(f"/{path}/{{collection_id}}", name=f"delete_{kind.value}")
    def delete_collection(collection_id: int, service: CodeplugService = Depends(get_service)):
        service.delete_collection(kind, collection_id)
        return {"deleted": collection_id}

    @router.get(f"/{path}/{{collection_id}}/channels", name=f"members_{kind.value}")
    def get_members(collection_id: int, service: CodeplugService = Depends(get_service)):
        return {"member_ids": service.member_ids(kind, collection_id)}

    @router.put(f"/{path}/{{collection_id}}/channels", name=f"assign_{kind.value}")
    def assign_members(
        collection_id: int, payload: AssignRequest, service: CodeplugService = Depends(get_service)
    ):
        ids = service.assign_members(kind, collection_id, payload.member_ids, append=payload.append)
        return {"member_ids": ids}


for _path, _kind in _COLLECTION_PATHS.items():
    _register_collection_routes(_path, _kind)


# Roaming channels ---------------------------------------------------------

@router.get("/roaming/channels", response_model=List[RoamingChannelRead])
def list_roaming_channels(service: CodeplugService = Depends(get_service)):
    return service.list_roaming_channels()


@router.post("/roaming/channels", response_model=RoamingChannelRead)
def create_roaming_channel(payload: RoamingChannelCreate, service: CodeplugService = Depends(get_service)):
    return service.add_roaming_channel(RoamingChannel(**payload.model_dump()))


@router.delete("/roaming/channels/{channel_id}")
def delete_roaming_channel(channel_id: int, service: CodeplugService = Depends(get_service)):
    service.delete_roaming_channel(channel_id)
    return {"deleted": channel_id}


# Filter lists -------------------------------------------------------------

@router.get("/contact-lists", response_model=List[ContactListRead])
def list_contact_lists(service: CodeplugService = Depends(get_service)):
    return service.list_contact_lists()


@router.post("/contact-lists")
async def upload_contact_list(
    file: UploadFile = File(...),
    name: str = Form(...),
    description: str = Form(""),
    service: CodeplugService = Depends(get_service),
):
    count = service.import_contact_list(name, await file.read(), description)
    return {"name": name, "count": count}


@router.delete("/contact-lists/{list_id}")
def delete_contact_list(list_id: int, service: CodeplugService = Depends(get_service)):
    service.delete_contact_list(list_id)
    return {"deleted": list_id}


# Import / export ----------------------------------------------------------

@router.post("/import", response_model=JobAccepted)
async def import_upload(
    file: UploadFile = File(...),
    format: str = Form("generic"),
    kind: str = Form(EntityKind.CHANNELS.value),
    overwrite: bool = Form(False),
    zone: Optional[str] = Form(None),
    worker: ImportWorker = Depends(get_worker),
):
    dialect = AUTO if format.strip().lower() == AUTO else get_codec(format).name
    if not EntityKind.has_value(kind):
        raise HTTPException(status_code=400, detail=f"Unknown entity kind: {kind}")
    data = await file.read()
    filename = file.filename or f"{kind}.csv"
    if (dialect in ARCHIVE_DIALECTS or dialect == AUTO) and zipfile.is_zipfile(io.BytesIO(data)):
        job_id = worker.submit(lambda o: o.import_archive(data, dialect, overwrite=overwrite))
    else:
        job_id = worker.submit(
            lambda o: o.import_file(
                data, dialect, EntityKind(kind), overwrite=overwrite, name=filename, zone=zone or None
            )
        )
    return JobAccepted(job_id=job_id)


@router.post("/import/radioid", response_model=JobAccepted)
def import_radioid(
    url: Optional[str] = None,
    use_list: Optional[str] = None,
    service: CodeplugService = Depends(get_service),
    worker: ImportWorker = Depends(get_worker),
):
    allow_ids = service.contact_list_ids(use_list) if use_list else None
    job_id = worker.submit(lambda o: o.import_directory_url(url, allow_ids=allow_ids))
    return JobAccepted(job_id=job_id)


@router.get("/progress", response_model=ProgressRead)
def get_progress(job_id: Optional[str] = None, worker: ImportWorker = Depends(get_worker)):
    return worker.progress(job_id).to_dict()


@router.post("/import/cancel")
def cancel_import(job_id: Optional[str] = None, worker: ImportWorker = Depends(get_worker)):
    worker.cancel(job_id)
    return {"cancelled": True}


@router.get("/export")
def export_codeplug(
    request: Request,
    format: str = "at890",
    zone: List[str] = Query(default=[]),
    use_list: Optional[str] = None,
    limit: Optional[int] = None,
):
    codec = get_codec(format)
    orchestrator = CodeplugOrchestrator(request.app.state.service.engine, request.app.state.settings)
    data = orchestrator.export(codec.name, zones=zone or None, filter_list=use_list, limit=limit)
    if codec.name in ARCHIVE_DIALECTS:
        media, filename = "application/zip", f"codeplug_{codec.name}.zip"
    else:
        media, filename = "text/csv", f"codeplug_{codec.name}.csv"
    return Response(
        content=data,
        media_type=media,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# Application ----------------------------------------------------------------

_STATUS_CODES: Dict[type, int] = {NotFoundError: 404, UnknownDialectError: 400}


async def _codeplug_error(request: Request, exc: CodeplugError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    engine = get_engine(settings.db_path)
    hub = ProgressHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.worker.shutdown(wait=False)

    app = FastAPI(title="Codeplug Manager", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = CodeplugService(engine)
    app.state.hub = hub
    app.state.worker = ImportWorker(engine, settings, reporter=hub)
    app.add_exception_handler(CodeplugError, _codeplug_error)
    app.include_router(router, prefix="/api")

    logger.info("codeplug API using %s", settings.db_path)
    return app
