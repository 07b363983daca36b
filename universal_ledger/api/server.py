"""FastAPI server for ledger queries and permissionless broadcasts.

Only operations that need no signature are exposed: queries, and the
broadcast calls anyone may make. Transfers, burns and admin operations go
through the CLI or the library.

Routes are organized into helper registration functions.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Callable, TypeVar

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import get_validated_config
from ..ledger.collection import Collection
from ..ledger.errors import (
    ErrorCategory,
    ErrorCode,
    LedgerError,
    NonexistentToken,
    StateFileConflict,
    validation_error,
)
from ..ledger.events import LedgerEvent
from ..ledger.token_id import decode_slot, parse_token_id, to_address
from .models import (
    BalanceInfo,
    BroadcastRequest,
    BroadcastResponse,
    CollectionInfo,
    EmittedEvent,
    InterfaceSupport,
    RecentEvents,
    TokenInfo,
)
from .watcher import StateFileWatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP status for each ledger error code
_STATUS_BY_CODE: dict[str, int] = {
    ErrorCode.NOT_FOUND.value: 404,
    ErrorCode.ALREADY_TRANSFERRED.value: 409,
    ErrorCode.LOCKED.value: 409,
}
_STATUS_BY_CATEGORY: dict[str, int] = {
    ErrorCategory.PERMISSION.value: 403,
    ErrorCategory.VALIDATION.value: 400,
    ErrorCategory.RESOURCE.value: 409,
}


def status_for(error: LedgerError) -> int:
    """HTTP status code for a ledger error."""
    return _STATUS_BY_CODE.get(
        error.code.value, _STATUS_BY_CATEGORY.get(error.category.value, 400)
    )


class LedgerApp:
    """API state: the collection, a lock serializing calls, and an optional state file.

    Every call takes the lock, so concurrent requests see a total order and
    the collection's one-call-at-a-time model holds. With a state file, the
    file is the source of truth: writes re-read it first, and events reach
    the log file only after the save succeeds.
    """

    def __init__(self, collection: Collection, state_path: str | Path | None = None) -> None:
        self.collection = collection
        self.state_path = Path(state_path) if state_path else None
        self._lock = threading.Lock()
        if self.state_path is not None:
            collection.event_logger.defer_writes = True

    def read(self, fn: Callable[[Collection], T]) -> T:
        with self._lock:
            return fn(self.collection)

    def write(self, fn: Callable[[Collection], T]) -> T:
        """Run a mutating call against the latest state file and persist it.

        Raises:
            StateFileConflict: If another process saved between our re-read
                and our save. The call is dropped and the file reloaded.
        """
        with self._lock:
            if self.state_path is None:
                return fn(self.collection)
            self._reload_locked()
            result = fn(self.collection)
            events = self.collection.event_logger
            try:
                self.collection.save(self.state_path)
            except StateFileConflict:
                events.discard()
                self._reload_locked()
                raise
            events.flush()
            return result

    def reload(self) -> bool:
        """Re-read the state file if another process committed to it.

        A file still at the revision of our last load or save is skipped.
        Returns True if the collection was replaced.
        """
        with self._lock:
            return self._reload_locked()

    def _reload_locked(self) -> bool:
        if self.state_path is None or not self.state_path.exists():
            return False
        with open(self.state_path) as f:
            data = json.load(f)
        if data.get("revision", 0) == self.collection.revision:
            return False
        events = self.collection.event_logger
        events.catch_up(data.get("event_sequence", 0))
        self.collection = Collection.from_dict(data, event_logger=events)
        logger.info(
            "Reloaded collection from %s at revision %s", self.state_path, self.collection.revision
        )
        return True


def _token_info(collection: Collection, token_id: int) -> TokenInfo:
    owner: str | None
    token_uri: str | None
    try:
        owner = collection.owner_of(token_id)
        token_uri = collection.token_uri(token_id)
    except NonexistentToken:
        owner = token_uri = None
    return TokenInfo(
        token_id=str(token_id),
        state=collection.state_of(token_id).value,
        owner=owner,
        token_uri=token_uri,
        init_owner=collection.init_owner(token_id),
        slot=str(decode_slot(token_id)),
        was_ever_transferred=collection.was_ever_transferred(token_id),
    )


def _emitted(events: list[LedgerEvent]) -> BroadcastResponse:
    return BroadcastResponse(events=[EmittedEvent(**e.to_dict()) for e in events])


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status_for(exc), content=exc.to_response())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content=validation_error(str(exc)))


def _register_query_routes(app: FastAPI, state: LedgerApp) -> None:
    @app.get("/api/collection")
    def get_collection() -> CollectionInfo:
        """Collection-level configuration."""
        def info(c: Collection) -> CollectionInfo:
            prefix, suffix = c.token_id_affixes()
            return CollectionInfo(
                name=c.name,
                symbol=c.symbol,
                address=c.address,
                admin=c.owner,
                base_uri=c.base_uri,
                prefix=prefix,
                suffix=suffix,
                locked=c.is_base_uri_locked(),
                version=c.universal_version,
            )
        return state.read(info)

    @app.get("/api/tokens/{token_id}")
    def get_token(token_id: str) -> TokenInfo:
        """Owner, URI and lifecycle state of a token. Never 404s: every id exists."""
        tid = parse_token_id(token_id)
        return state.read(lambda c: _token_info(c, tid))

    @app.get("/api/tokens/{token_id}/owner")
    def get_owner(token_id: str) -> dict[str, str]:
        tid = parse_token_id(token_id)
        return {"token_id": str(tid), "owner": state.read(lambda c: c.owner_of(tid))}

    @app.get("/api/tokens/{token_id}/uri")
    def get_token_uri(token_id: str) -> dict[str, str]:
        tid = parse_token_id(token_id)
        return {"token_id": str(tid), "token_uri": state.read(lambda c: c.token_uri(tid))}

    @app.get("/api/balances/{address}")
    def get_balance(address: str) -> BalanceInfo:
        account = to_address(address)
        balance = state.read(lambda c: c.balance_of(account))
        return BalanceInfo(address=account, balance=str(balance))

    @app.get("/api/interfaces/{interface_id}")
    def get_interface(interface_id: str) -> InterfaceSupport:
        iid = int(interface_id, 16) if interface_id.lower().startswith("0x") else int(interface_id)
        if not 0 <= iid <= 0xFFFFFFFF:
            raise ValueError(f"Interface id out of range: {interface_id}")
        supported = state.read(lambda c: c.supports_interface(iid))
        return InterfaceSupport(interface_id=f"0x{iid:08x}", supported=supported)

    @app.get("/api/events")
    def get_events(limit: int | None = Query(default=None, gt=0)) -> RecentEvents:
        """Most recent committed events, oldest first."""
        events = state.read(lambda c: c.recent_events(limit))
        return RecentEvents(events=events, count=len(events))


def _register_broadcast_routes(app: FastAPI, state: LedgerApp) -> None:
    max_batch = get_validated_config().api.max_batch_size

    def _ids(request: BroadcastRequest) -> list[int]:
        if len(request.token_ids) > max_batch:
            raise ValueError(f"At most {max_batch} token ids per broadcast")
        return [parse_token_id(t) for t in request.token_ids]

    @app.post("/api/broadcast/mint")
    def broadcast_mint(request: BroadcastRequest) -> BroadcastResponse:
        """Emit Transfer(zero, seed, id) for each VIRTUAL token. All or nothing."""
        tids = _ids(request)
        return _emitted(state.write(lambda c: c.broadcast_mint_batch(tids)))

    @app.post("/api/broadcast/self-transfer")
    def broadcast_self_transfer(request: BroadcastRequest) -> BroadcastResponse:
        """Emit Transfer(seed, seed, id) for each VIRTUAL token. All or nothing."""
        tids = _ids(request)
        return _emitted(state.write(lambda c: c.broadcast_self_transfer_batch(tids)))


def create_app(collection: Collection, state_path: str | Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        collection: The collection to serve
        state_path: If set, the state file is rewritten after each broadcast
            so the event sequence survives restarts
    """
    app = FastAPI(
        title="Universal Ledger",
        description="Queries and permissionless broadcasts for a universal token collection",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    state = LedgerApp(collection, state_path)
    app.state.ledger = state

    if state.state_path is not None and get_validated_config().api.watch_state_file:
        watcher = StateFileWatcher(state.state_path, state.reload)

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            """Lifespan context manager for startup/shutdown."""
            watcher.start()
            yield
            watcher.stop()

        app.router.lifespan_context = lifespan

    _register_error_handlers(app)
    _register_query_routes(app, state)
    _register_broadcast_routes(app, state)

    return app


def run_server(
    collection: Collection,
    host: str | None = None,
    port: int | None = None,
    state_path: str | Path | None = None,
) -> None:
    """Run the API server."""
    import uvicorn

    api_cfg = get_validated_config().api
    app = create_app(collection, state_path=state_path)
    uvicorn.run(app, host=host or api_cfg.host, port=port or api_cfg.port)

