"""
FastAPI WebSocket server for the party card game.
"""

import asyncio
import logging
import os
import uuid
from collections import defaultdict
from typing import Dict, Optional, Set

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..constants import PHASE_JUDGING, TIMER_EXPIRED
from ..engine import ActionResult, RoundEngine
from ..errors import GameError
from ..grace import DisconnectGraceCoordinator
from ..packs import DirectoryDeckSource, StaticPackSource, list_available_packs
from ..rooms import RoomRegistry
from ..rules import RuleConfig, default_rules
from ..scheduling import AsyncioScheduler, Scheduler
from .events import (
    CreateRoomEvent, EndGameEvent, ErrorCode, EventType, JoinEvent, LeaveEvent,
    NextRoundEvent, RequestStateEvent, SelectWinnerEvent, StartEvent, SubmitEvent,
    SwapEvent, ToggleTimerEvent, TradePromptEvent, UpdateSettingsEvent,
    create_action_result_event, create_error_event, create_hand_event,
    create_join_success_event, create_round_winner_event, create_state_full_event,
    create_submissions_event, parse_inbound_event
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def default_pack_source():
    """Custom decks come from CZAR_DECKS_DIR when it is set."""
    decks_dir = os.getenv("CZAR_DECKS_DIR")
    if decks_dir:
        return DirectoryDeckSource(decks_dir)
    return StaticPackSource()


class ConnectionManager:
    """Manages WebSocket connections and room membership of connections."""

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.connection_rooms: Dict[str, str] = {}
        self.room_connections: Dict[str, Set[str]] = defaultdict(set)

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = websocket
        logger.info(f"Connection {connection_id} opened")
        return connection_id

    def bind(self, connection_id: str, room_code: str):
        self.unbind(connection_id)
        self.connection_rooms[connection_id] = room_code
        self.room_connections[room_code].add(connection_id)

    def unbind(self, connection_id: str) -> Optional[str]:
        room_code = self.connection_rooms.pop(connection_id, None)
        if room_code is not None:
            members = self.room_connections.get(room_code)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del self.room_connections[room_code]
        return room_code

    def disconnect(self, connection_id: str) -> Optional[str]:
        """Forget a connection; returns the room it was in."""
        self.connections.pop(connection_id, None)
        room_code = self.unbind(connection_id)
        logger.info(f"Connection {connection_id} closed (room {room_code})")
        return room_code

    def room_of(self, connection_id: str) -> Optional[str]:
        return self.connection_rooms.get(connection_id)

    def members(self, room_code: str) -> Set[str]:
        return set(self.room_connections.get(room_code, ()))

    async def send(self, connection_id: str, event: BaseModel):
        websocket = self.connections.get(connection_id)
        if websocket is None:
            return
        try:
            await websocket.send_text(orjson.dumps(event.model_dump(mode="json")).decode())
        except Exception as e:
            logger.error(f"Error sending to {connection_id}: {e}")
            # room membership is released by the receive loop when it ends
            self.connections.pop(connection_id, None)

    async def broadcast(self, room_code: str, event: BaseModel):
        for connection_id in self.members(room_code):
            await self.send(connection_id, event)


class GameServer:
    """Routes inbound events to the room registry and broadcasts the results."""

    def __init__(
        self,
        rules: Optional[RuleConfig] = None,
        pack_source=None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.rules = rules or default_rules
        self.pack_source = pack_source or default_pack_source()
        self.scheduler = scheduler or AsyncioScheduler()
        self.registry = RoomRegistry(engine_factory=self._create_engine)
        self.coordinator = DisconnectGraceCoordinator(
            self.registry,
            self.scheduler,
            self.rules.grace_seconds,
            on_expired=self._on_grace_expired,
        )
        self.connections = ConnectionManager()
        self._tasks: Set[asyncio.Task] = set()
        self._handlers = {
            EventType.CREATE_ROOM: self.handle_create_room,
            EventType.JOIN: self.handle_join,
            EventType.UPDATE_SETTINGS: self.handle_update_settings,
            EventType.START: self.handle_start,
            EventType.SUBMIT: self.handle_submit,
            EventType.SWAP: self.handle_swap,
            EventType.TRADE_PROMPT: self.handle_trade_prompt,
            EventType.TOGGLE_TIMER: self.handle_toggle_timer,
            EventType.SELECT_WINNER: self.handle_select_winner,
            EventType.NEXT_ROUND: self.handle_next_round,
            EventType.END_GAME: self.handle_end_game,
            EventType.LEAVE: self.handle_leave,
            EventType.REQUEST_STATE: self.handle_request_state,
        }

    def _create_engine(self, room_code: str) -> RoundEngine:
        return RoundEngine(
            room_code,
            rules=self.rules,
            pack_source=self.pack_source,
            scheduler=self.scheduler,
            on_timer_event=self._on_timer_event,
        )

    # Background notifications

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_timer_event(self, engine: RoundEngine, event: str):
        self._spawn(self.broadcast_state(engine.room_code, hands=event == TIMER_EXPIRED))

    def _on_grace_expired(self, room_code: str, result: ActionResult):
        if self.registry.get_room(room_code) is not None:
            self._spawn(self.broadcast_state(room_code, hands=False))

    # Connection lifecycle

    async def handle_connection(self, websocket: WebSocket):
        connection_id = await self.connections.connect(websocket)
        try:
            while True:
                raw_data = await websocket.receive_text()
                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                    await self._handlers[event.type](connection_id, event)
                except ValueError as e:
                    await self.connections.send(
                        connection_id, create_error_event(ErrorCode.INVALID_EVENT, str(e))
                    )
                except Exception as e:
                    logger.exception(f"Error handling event from {connection_id}: {e}")
                    await self.connections.send(
                        connection_id, create_error_event(ErrorCode.INTERNAL, "Internal server error")
                    )
        except WebSocketDisconnect:
            logger.info(f"WebSocket {connection_id} disconnected")
        finally:
            room_code = self.connections.disconnect(connection_id)
            if room_code:
                result = self.coordinator.player_disconnected(room_code, connection_id)
                if result.success:
                    await self.broadcast_state(room_code, hands=False)

    # Broadcasting

    async def broadcast_state(self, room_code: str, hands: bool = True):
        """Send the public state to the room, plus each member's own hand."""
        engine = self.registry.get_room(room_code)
        if engine is None:
            return
        state_event = create_state_full_event(engine.get_game_state())
        czar_id = engine.current_czar_id
        for connection_id in self.connections.members(room_code):
            await self.connections.send(connection_id, state_event)
            if hands:
                await self.connections.send(connection_id, create_hand_event(engine.get_player_hand(connection_id)))
            if engine.phase == PHASE_JUDGING and connection_id == czar_id:
                await self.connections.send(connection_id, create_submissions_event(engine.get_submissions()))

    async def _reply(self, connection_id: str, action: EventType, result: ActionResult):
        await self.connections.send(connection_id, create_action_result_event(action, result.to_dict()))

    async def _engine_for(self, connection_id: str) -> Optional[RoundEngine]:
        engine = self.registry.get_room(self.connections.room_of(connection_id))
        if engine is None:
            await self.connections.send(
                connection_id, create_error_event(ErrorCode.NOT_IN_ROOM, "Not in a room")
            )
        return engine

    async def _run(self, connection_id: str, action: EventType, call, hands: bool = True) -> Optional[ActionResult]:
        engine = await self._engine_for(connection_id)
        if engine is None:
            return None
        result = call(engine)
        await self._reply(connection_id, action, result)
        if result.success:
            await self.broadcast_state(engine.room_code, hands=hands)
        return result

    # Event handlers

    async def _leave_current_room(self, connection_id: str):
        previous = self.connections.room_of(connection_id)
        if previous:
            self.coordinator.player_left(previous, connection_id)
            self.connections.unbind(connection_id)
            await self.broadcast_state(previous, hands=False)

    async def handle_create_room(self, connection_id: str, event: CreateRoomEvent):
        await self._leave_current_room(connection_id)
        try:
            room_code, _ = self.registry.create_room(event.name, connection_id)
        except GameError as e:
            await self._reply(connection_id, event.type, ActionResult.fail(e.code, e.message))
            return
        await self._reply(connection_id, event.type, ActionResult.ok("Room created", room_code=room_code))
        self.connections.bind(connection_id, room_code)
        await self.connections.send(connection_id, create_join_success_event(room_code, connection_id))
        await self.broadcast_state(room_code)

    async def handle_join(self, connection_id: str, event: JoinEvent):
        current = self.connections.room_of(connection_id)
        if current and current != event.room_code.upper():
            await self._leave_current_room(connection_id)
        result = self.coordinator.join(event.room_code, connection_id, event.name)
        await self._reply(connection_id, EventType.JOIN, result)
        if not result.success:
            return

        engine = self.registry.get_room(event.room_code)
        self.connections.bind(connection_id, engine.room_code)
        await self.connections.send(
            connection_id,
            create_join_success_event(engine.room_code, connection_id, result.extra.get('reconnected', False))
        )
        await self.broadcast_state(engine.room_code)

    async def handle_update_settings(self, connection_id: str, event: UpdateSettingsEvent):
        await self._run(
            connection_id, event.type,
            lambda engine: engine.update_settings(event.packs, event.timer_enabled, event.timer_duration),
            hands=False,
        )

    async def handle_start(self, connection_id: str, event: StartEvent):
        await self._run(connection_id, event.type, lambda engine: engine.start_game(event.packs))

    async def handle_submit(self, connection_id: str, event: SubmitEvent):
        await self._run(connection_id, event.type, lambda engine: engine.submit_card(connection_id, event.cards))

    async def handle_swap(self, connection_id: str, event: SwapEvent):
        await self._run(connection_id, event.type, lambda engine: engine.swap_cards(connection_id, event.cards))

    async def handle_trade_prompt(self, connection_id: str, event: TradePromptEvent):
        await self._run(connection_id, event.type, lambda engine: engine.trade_prompt_card(connection_id), hands=False)

    async def handle_toggle_timer(self, connection_id: str, event: ToggleTimerEvent):
        await self._run(connection_id, event.type, lambda engine: engine.toggle_timer(connection_id), hands=False)

    async def handle_select_winner(self, connection_id: str, event: SelectWinnerEvent):
        result = await self._run(
            connection_id, event.type,
            lambda engine: engine.select_winner(connection_id, event.winner_id),
            hands=False,
        )
        if result is not None and result.success:
            await self.connections.broadcast(
                self.connections.room_of(connection_id),
                create_round_winner_event(event.winner_id, result.extra['game_over'], result.extra['winner'])
            )

    async def handle_next_round(self, connection_id: str, event: NextRoundEvent):
        await self._run(connection_id, event.type, lambda engine: engine.next_round())

    async def handle_end_game(self, connection_id: str, event: EndGameEvent):
        await self._run(connection_id, event.type, lambda engine: engine.force_end_game(), hands=False)

    async def handle_leave(self, connection_id: str, event: LeaveEvent):
        room_code = self.connections.room_of(connection_id)
        if room_code is None:
            await self.connections.send(
                connection_id, create_error_event(ErrorCode.NOT_IN_ROOM, "Not in a room")
            )
            return
        result = self.coordinator.player_left(room_code, connection_id)
        self.connections.unbind(connection_id)
        await self._reply(connection_id, event.type, result)
        await self.broadcast_state(room_code, hands=False)

    async def handle_request_state(self, connection_id: str, event: RequestStateEvent):
        engine = await self._engine_for(connection_id)
        if engine is None:
            return
        await self.connections.send(connection_id, create_state_full_event(engine.get_game_state()))
        await self.connections.send(connection_id, create_hand_event(engine.get_player_hand(connection_id)))


def create_app(server: Optional[GameServer] = None) -> FastAPI:
    """Build the FastAPI app around one GameServer."""
    server = server or GameServer()

    app = FastAPI(title="Czar Card Game Engine", version="1.0.0")
    app.state.game_server = server

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "rooms": len(server.registry),
            "connections": len(server.connections.connections),
        }

    @app.get("/api/packs")
    async def available_packs():
        return {"packs": list_available_packs(server.pack_source)}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Main WebSocket endpoint."""
        await server.handle_connection(websocket)

    return app


app = create_app()


# Main entry point for module execution
if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
