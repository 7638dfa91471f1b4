import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, Counter, Histogram, Gauge

from tierfs_data_model.data_model_utils import DataModelUtils
from tierfs_data_model.data_models import CreateFileRequest, CompleteFileRequest, FileInfoModel, BytesModel, \
    ErrorModel, ClientOptionsModel
from tierfs_db.client.client_config import MasterSettings
from tierfs_db.engine.tiered_storage_engine import TieredStorageEngine
from tierfs_exception_model.exception import TierFsException, InvalidPathError, InvalidPayloadError, \
    FileDoesNotExistError, FileAlreadyExistsError, StorageCapacityError, ConfigurationError

logger = logging.getLogger(__name__)

# Most specific classes first
_STATUS_CODES = (
    (FileDoesNotExistError, 404),
    (FileAlreadyExistsError, 409),
    (StorageCapacityError, 507),
    (InvalidPathError, 400),
    (InvalidPayloadError, 400),
    (ConfigurationError, 400),
)


def _error_response(e: TierFsException) -> HTTPException:
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(e, cls)), 500)
    file_id = e.file_id if isinstance(e.file_id, int) else None
    body = ErrorModel(error=type(e).__name__, message=e.message, path=e.path, file_id=file_id)
    return HTTPException(status_code=status_code, detail=body.model_dump())


class TierFsMasterAPI:
    """
    TierFsMasterAPI: HTTP interface of the tierfs storage coordinator

    Serves one TieredStorageEngine: namespace operations, commits of closed
    output streams and ranged reads.

    Base URL:
        http://127.0.0.1:19998

    ---

    Health & Readiness
    ------------------

        curl http://127.0.0.1:19998/healthz
        curl http://127.0.0.1:19998/readyz

    ---

    Files
    -----

    1. Create an empty file:
        POST /files

        Request JSON:
        {
            "path": "/test/roundtrip",
            "options": {"storage_type": "STORE", "under_storage_type": "PERSIST"}
        }

    2. Commit the bytes of a closed output stream:
        POST /files/{file_id}/complete

        Request JSON:
        {
            "data": {"b64": "<base64-encoded-bytes>", "length": 80, "offset": 0},
            "options": {"storage_type": "STORE", "under_storage_type": "PERSIST"}
        }

    3. File status:
        GET /files/{file_id}

    4. Ranged read (may return fewer bytes than requested):
        GET /files/{file_id}/data?offset=0&length=80

    5. Delete:
        DELETE /files/{file_id}

    ---

    Paths
    -----

        GET /paths/status?path=/test/roundtrip
        GET /paths/list?path=/test

    ---

    Errors
    ------

    Failures carry {"detail": {"error": <exception class>, "message": ..., "path": ..., "file_id": ...}}
    with status 400 (invalid path/payload), 404 (no such file), 409 (already exists),
    507 (out of capacity) or 500 (storage failure).

    ---

    Metrics (Prometheus)
    ---------------------

        curl http://127.0.0.1:19998/metrics
    """
    def __init__(self, engine: Optional[TieredStorageEngine] = None, settings: Optional[MasterSettings] = None):
        settings = settings or MasterSettings()
        if engine is None:
            engine = TieredStorageEngine(
                under_storage_root=settings.under_storage_root,
                memory_capacity_bytes=settings.memory_capacity_bytes,
                max_files=settings.max_files,
                max_read_chunk=settings.max_read_chunk,
            )
        self.engine = engine

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            # ==== Startup ====
            logger.info(f"tierfs master serving under storage {self.engine.under_storage.root}")
            yield
            # ==== Shutdown ====
            await asyncio.to_thread(self.engine.shutdown)

        self.app = FastAPI(
            title="tierfs Master API",
            description="RESTful API for the tierfs storage coordinator",
            version="1.0.0",
            lifespan=lifespan
        )

        # Liveness probe: indicates the app is up
        @self.app.get("/healthz", include_in_schema=False)
        async def healthz():
            return JSONResponse({"status": "ok"})

        # Readiness probe: the under storage root must be reachable
        @self.app.get("/readyz", include_in_schema=False)
        async def readyz():
            if not self.engine.under_storage.root.is_dir():
                raise HTTPException(status_code=503, detail="not ready")
            return JSONResponse({"status": "ready"})

        self.create_counter = Counter('tierfs_create_total', 'Total number of create file operations')
        self.complete_counter = Counter('tierfs_complete_total', 'Total number of complete file operations')
        self.read_counter = Counter('tierfs_read_total', 'Total number of ranged read operations')
        self.delete_counter = Counter('tierfs_delete_total', 'Total number of delete operations')
        self.create_latency = Histogram('tierfs_create_latency', 'Create file operation latency')
        self.complete_latency = Histogram('tierfs_complete_latency', 'Complete file operation latency')
        self.read_latency = Histogram('tierfs_read_latency', 'Ranged read operation latency')
        self.delete_latency = Histogram('tierfs_delete_latency', 'Delete operation latency')
        self.memory_used = Gauge('tierfs_memory_tier_used_bytes', 'Bytes cached in the memory tier')
        self.file_count = Gauge('tierfs_file_count', 'Number of files in the namespace')

        self._setup_routes()

    def _update_gauges(self):
        self.memory_used.set(self.engine.memory_used_bytes)
        self.file_count.set(self.engine.file_count)

    def _setup_routes(self):
        """Setup FastAPI routes"""

        def with_error_handling():
            """
            Decorator factory to wrap route handlers in shared exception logic.
            tierfs exceptions keep their class name in the error body so the
            client can raise the same class again.
            """

            def decorator(func):
                @wraps(func)
                async def wrapper(*args, **kwargs):
                    try:
                        return await func(*args, **kwargs)
                    except TierFsException as e:
                        raise _error_response(e)
                    except ValueError as e:
                        raise _error_response(InvalidPayloadError(str(e)))
                return wrapper
            return decorator

        @self.app.post("/files", response_model=FileInfoModel)
        @with_error_handling()
        async def create_file(request: CreateFileRequest):
            self.create_counter.inc()

            with self.create_latency.time():
                options = DataModelUtils.convert_to_client_options(request.options)
                file_id = self.engine.create_file(request.path, options)
                info = self.engine.get_file_info(file_id)
                self._update_gauges()
                return DataModelUtils.convert_from_file_info(info)

        @self.app.post("/files/{file_id}/complete", response_model=FileInfoModel)
        @with_error_handling()
        async def complete_file(file_id: int, request: CompleteFileRequest):
            self.complete_counter.inc()

            with self.complete_latency.time():
                options = DataModelUtils.convert_to_client_options(request.options)
                data = DataModelUtils.convert_to_bytes(request.data)
                info = self.engine.complete_file(file_id, data, options)
                self._update_gauges()
                return DataModelUtils.convert_from_file_info(info)

        @self.app.get("/files/{file_id}", response_model=FileInfoModel)
        @with_error_handling()
        async def get_file_info(file_id: int):
            return DataModelUtils.convert_from_file_info(self.engine.get_file_info(file_id))

        @self.app.get("/files/{file_id}/data", response_model=BytesModel)
        @with_error_handling()
        async def read_range(file_id: int, offset: int = Query(0, ge=0), length: int = Query(..., ge=0),
                             storage_type: str = "STORE", under_storage_type: str = "PERSIST"):
            self.read_counter.inc()

            with self.read_latency.time():
                options = DataModelUtils.convert_to_client_options(
                    ClientOptionsModel(storage_type=storage_type, under_storage_type=under_storage_type))
                data = self.engine.read_range(file_id, offset, length, options)
                self._update_gauges()
                return BytesModel.from_bytes(data, offset=offset)

        @self.app.delete("/files/{file_id}", response_model=FileInfoModel)
        @with_error_handling()
        async def delete_file(file_id: int):
            self.delete_counter.inc()

            with self.delete_latency.time():
                info = self.engine.delete_file(file_id)
                self._update_gauges()
                return DataModelUtils.convert_from_file_info(info)

        @self.app.get("/paths/status", response_model=FileInfoModel)
        @with_error_handling()
        async def path_status(path: str):
            return DataModelUtils.convert_from_file_info(self.engine.get_file_info_by_path(path))

        @self.app.get("/paths/list", response_model=List[FileInfoModel])
        @with_error_handling()
        async def list_status(path: str = "/"):
            return [DataModelUtils.convert_from_file_info(i) for i in self.engine.list_status(path)]

        @self.app.get("/metrics")
        async def metrics():
            data = await asyncio.to_thread(generate_latest)
            return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def main(argv=None):
    import uvicorn

    settings = MasterSettings()
    parser = argparse.ArgumentParser(prog="tierfs-master", description="Run the tierfs storage coordinator")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--under-storage-root", default=settings.under_storage_root,
                        help="Directory backing the durable under storage")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = settings.model_copy(update={"under_storage_root": args.under_storage_root})
    api = TierFsMasterAPI(settings=settings)
    uvicorn.run(api.app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
