"""Request validation and chat message assembly shared by all backends."""

from ..models import (
    ContextMissing,
    ContextSource,
    DialogueErrorKind,
    DialogueRequest,
    ProviderFailure,
    RateLimited,
    ScheduleUpdate,
    TopicHint,
    TradeContext,
)

EMPTY_PROMPT_ERROR = "prompt cannot be empty"

# Debug affordance: operators and tests send this prompt to force the retry
# path deterministically. It never reaches a provider.
MANUAL_RETRY_PROMPT = "retry later"
MANUAL_RETRY_BACKOFF_SECONDS = 3.0

FALLBACK_TARGET_LABEL = "player"
CONTEXT_FALLBACK_MESSAGE = "No notable context available."
RESPONSE_INSTRUCTION = "Respond as the speaker, addressing the target naturally."

SYSTEM_PROMPT = (
    "You are a medieval villager in a life-simulation game. Respond briefly "
    "(1-3 sentences), stay in character, and reference only the supplied "
    "context. If information is missing, acknowledge the gap."
)


def validate_request(request: DialogueRequest) -> DialogueErrorKind | None:
    """Return the rejection for a request, or None when it may be sent."""
    prompt = request.prompt.strip()
    if not prompt:
        return ProviderFailure(EMPTY_PROMPT_ERROR)

    if prompt.lower() == MANUAL_RETRY_PROMPT:
        return RateLimited(MANUAL_RETRY_BACKOFF_SECONDS)

    context = request.context
    if request.topic == TopicHint.TRADE:
        if not (context.summary and context.summary.strip()):
            return ContextMissing(ContextSource.INVENTORY_STATE)
        if not context.has_trade():
            return ContextMissing(ContextSource.TRADE_HISTORY)
    elif request.topic == TopicHint.SCHEDULE:
        if not context.has_schedule_update():
            return ContextMissing(ContextSource.SCHEDULE_STATE)

    return None


def describe_trade(trade: TradeContext) -> str:
    detail = (
        f"Trade event: Day {trade.day} {trade.reason.verb} "
        f"{trade.descriptor.quantity} {trade.descriptor.label}"
    )
    if trade.from_npc is not None:
        detail += f" (from {trade.from_npc})"
    if trade.to_npc is not None:
        detail += f" (to {trade.to_npc})"
    return detail


def context_lines(request: DialogueRequest) -> list[str]:
    """Summary and event lines, in the order the caller supplied them."""
    lines = []
    summary = (request.context.summary or "").strip()
    if summary:
        lines.append(f"Context summary: {summary}")

    for event in request.context.events:
        if isinstance(event, TradeContext):
            lines.append(describe_trade(event))
        elif isinstance(event, ScheduleUpdate) and event.description.strip():
            lines.append(f"Schedule update: {event.description.strip()}")

    return lines


def build_user_lines(request: DialogueRequest, *, live: bool) -> list[str]:
    """Assemble the user message lines.

    Order: speaker, target, topic, prompt, context (or a placeholder when
    there is none), and for live providers a closing instruction.
    """
    target = str(request.target) if request.target is not None else FALLBACK_TARGET_LABEL
    lines = [
        f"Speaker: {request.speaker}",
        f"Target: {target}",
        f"Topic: {request.topic.value}",
        f"Prompt: {request.prompt.strip()}",
    ]
    lines.extend(context_lines(request) or [CONTEXT_FALLBACK_MESSAGE])
    if live:
        lines.append(RESPONSE_INSTRUCTION)
    return lines


def build_messages(request: DialogueRequest) -> list[dict[str, str]]:
    """Chat-completion message list for a live provider."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(build_user_lines(request, live=True))},
    ]


def compose_fallback_text(request: DialogueRequest) -> str:
    """Deterministic local response used when no live provider is configured."""
    return " ".join(build_user_lines(request, live=False))
