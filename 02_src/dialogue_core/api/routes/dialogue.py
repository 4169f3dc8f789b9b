"""Dialogue request API routes."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...models import (
    DialogueContext,
    DialogueRequest,
    NpcId,
    ScheduleUpdate,
    TopicHint,
    TradeContext,
    TradeDescriptor,
    TradeReason,
)


class TradeEventModel(BaseModel):
    """A trade the speaker can reference."""

    type: Literal["trade"] = "trade"
    day: int = Field(ge=0)
    label: str
    quantity: int = Field(ge=0)
    reason: TradeReason
    from_npc: int | None = Field(None, ge=0)
    to_npc: int | None = Field(None, ge=0)

    def to_domain(self) -> TradeContext:
        return TradeContext(
            day=self.day,
            descriptor=TradeDescriptor(label=self.label, quantity=self.quantity),
            reason=self.reason,
            from_npc=NpcId(self.from_npc) if self.from_npc is not None else None,
            to_npc=NpcId(self.to_npc) if self.to_npc is not None else None,
        )


class ScheduleEventModel(BaseModel):
    """A change to the speaker's daily plan."""

    type: Literal["schedule"] = "schedule"
    description: str

    def to_domain(self) -> ScheduleUpdate:
        return ScheduleUpdate(description=self.description)


ContextEventModel = Annotated[
    Union[TradeEventModel, ScheduleEventModel], Field(discriminator="type")
]


class DialogueRequestModel(BaseModel):
    """Request model for enqueueing a dialogue request."""

    speaker: int = Field(ge=0)
    target: int | None = Field(None, ge=0)
    prompt: str
    topic: TopicHint = TopicHint.STATUS
    summary: str | None = None
    events: list[ContextEventModel] = Field(default_factory=list)

    def to_domain(self) -> DialogueRequest:
        return DialogueRequest(
            speaker=NpcId(self.speaker),
            target=NpcId(self.target) if self.target is not None else None,
            prompt=self.prompt,
            topic=self.topic,
            context=DialogueContext(
                summary=self.summary,
                events=tuple(event.to_domain() for event in self.events),
            ),
        )


class EnqueueResponse(BaseModel):
    """Response model for an accepted request."""

    request_id: int


def create_dialogue_router(app: Application) -> APIRouter:
    """Create dialogue router."""
    router = APIRouter(prefix="/api/dialogue", tags=["dialogue"])

    @router.post("/requests", response_model=EnqueueResponse)
    async def enqueue_request(request: DialogueRequestModel) -> dict:
        """Queue a dialogue request for background dispatch."""
        try:
            request_id = app.enqueue(request.to_domain())
            return {"request_id": request_id}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
