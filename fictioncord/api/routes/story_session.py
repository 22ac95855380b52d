"""Story session API routes.

One endpoint per chat command. Domain errors become RFC 7807 responses
whose detail is the reply the chat bot shows the participant.

Status mapping:
    NoSessionError          -> 404
    AlreadyActiveError      -> 409
    WrongPhaseError         -> 409
    AlreadyEnrolledError    -> 409
    PromptCapReachedError   -> 409
    NotYourTurnError        -> 409
    SubmissionTooLongError  -> 422
    NotEligibleError        -> 403
    NotAuthorizedError      -> 403
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from fictioncord.api.dependencies.story_session import get_session_service
from fictioncord.api.models.story_session import (
    ActorRequest,
    EndSessionResponse,
    ResetSessionRequest,
    SessionErrorResponse,
    SessionResponse,
    SessionStatusResponse,
    SkipStepResponse,
    StartSessionRequest,
    StoryTurnModel,
    TextSubmissionRequest,
    ThreadMessageRequest,
    ThreadMessageResponse,
)
from fictioncord.application.services.story_session_service import (
    StorySessionService,
)
from fictioncord.domain.errors import (
    AlreadyActiveError,
    AlreadyEnrolledError,
    NoSessionError,
    NotAuthorizedError,
    NotEligibleError,
    NotYourTurnError,
    PromptCapReachedError,
    StorySessionError,
    SubmissionTooLongError,
    WrongPhaseError,
)
from fictioncord.infrastructure.observability import bind_server_context

router = APIRouter(prefix="/v1/servers", tags=["story-session"])

# Error class -> (status, type slug, title). Checked in order.
_ERROR_MAP: tuple[tuple[type[StorySessionError], int, str, str], ...] = (
    (NoSessionError, 404, "no-session", "No Active Session"),
    (AlreadyActiveError, 409, "already-active", "Session Already Running"),
    (WrongPhaseError, 409, "wrong-phase", "Wrong Phase"),
    (AlreadyEnrolledError, 409, "already-enrolled", "Already Enrolled"),
    (PromptCapReachedError, 409, "prompt-cap-reached", "Prompt List Full"),
    (NotYourTurnError, 409, "not-your-turn", "Not Your Turn"),
    (SubmissionTooLongError, 422, "submission-too-long", "Submission Rejected"),
    (NotEligibleError, 403, "not-eligible", "Not Eligible"),
    (NotAuthorizedError, 403, "not-authorized", "Not Authorized"),
)

_ERROR_RESPONSES = {
    403: {"model": SessionErrorResponse, "description": "Actor lacks the required role"},
    404: {"model": SessionErrorResponse, "description": "No session on this server"},
    409: {"model": SessionErrorResponse, "description": "Command not valid right now"},
    422: {"model": SessionErrorResponse, "description": "Text blank or over the limit"},
}


def _to_http_exception(error: StorySessionError, request: Request) -> HTTPException:
    status, slug, title = 400, "session-error", "Session Error"
    for error_type, mapped_status, mapped_slug, mapped_title in _ERROR_MAP:
        if isinstance(error, error_type):
            status, slug, title = mapped_status, mapped_slug, mapped_title
            break

    detail: dict[str, object] = {
        "type": f"urn:fictioncord:session:{slug}",
        "title": title,
        "status": status,
        "detail": str(error),
        "instance": str(request.url),
    }
    if isinstance(error, AlreadyActiveError):
        detail["started_at"] = error.started_at.isoformat()
        detail["can_end"] = error.can_end
    elif isinstance(error, NotAuthorizedError):
        detail["leader_id"] = error.leader_id
    elif isinstance(error, NotYourTurnError):
        detail["current_writer_id"] = error.current_writer_id
    elif isinstance(error, SubmissionTooLongError):
        detail["max_length"] = error.max_length
    return HTTPException(status_code=status, detail=detail)


@router.post(
    "/{server_id}/session",
    response_model=SessionResponse,
    status_code=201,
    responses={409: _ERROR_RESPONSES[409]},
    summary="Start a storytelling session",
)
async def start_session(
    server_id: str,
    request_data: StartSessionRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> SessionResponse:
    """Open enrollment; the actor becomes leader and first writer."""
    bind_server_context(server_id, request_data.actor_id)
    try:
        session = await service.start_session(
            server_id, request_data.channel_id, request_data.actor_id
        )
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    return SessionResponse.from_session(session)


@router.get(
    "/{server_id}/session",
    response_model=SessionStatusResponse,
    responses={404: _ERROR_RESPONSES[404]},
    summary="Show the current step and time remaining",
)
async def get_status(
    server_id: str,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> SessionStatusResponse:
    bind_server_context(server_id)
    try:
        status = await service.get_status(server_id)
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    return SessionStatusResponse.from_status(status)


@router.post(
    "/{server_id}/session/writers",
    response_model=SessionResponse,
    responses={404: _ERROR_RESPONSES[404], 409: _ERROR_RESPONSES[409]},
    summary="Join as a writer during enrollment",
)
async def join_enrollment(
    server_id: str,
    request_data: ActorRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> SessionResponse:
    bind_server_context(server_id, request_data.actor_id)
    try:
        session = await service.join_enrollment(server_id, request_data.actor_id)
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    return SessionResponse.from_session(session)


@router.post(
    "/{server_id}/session/prompts",
    response_model=SessionResponse,
    responses=_ERROR_RESPONSES,
    summary="Submit a prompt idea",
)
async def submit_prompt(
    server_id: str,
    request_data: TextSubmissionRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> SessionResponse:
    bind_server_context(server_id, request_data.actor_id)
    try:
        session = await service.submit_prompt(
            server_id, request_data.actor_id, request_data.text
        )
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    return SessionResponse.from_session(session)


@router.post(
    "/{server_id}/session/turns",
    response_model=SessionResponse,
    responses={
        404: _ERROR_RESPONSES[404],
        409: _ERROR_RESPONSES[409],
        422: _ERROR_RESPONSES[422],
    },
    summary="Submit your story turn",
)
async def submit_turn(
    server_id: str,
    request_data: TextSubmissionRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> SessionResponse:
    """Append the turn and hand the turn to the next writer.

    Only the writer currently on turn may submit.
    """
    bind_server_context(server_id, request_data.actor_id)
    try:
        session = await service.submit_turn(
            server_id, request_data.actor_id, request_data.text
        )
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    return SessionResponse.from_session(session)


@router.post(
    "/{server_id}/session/end",
    response_model=EndSessionResponse,
    responses={403: _ERROR_RESPONSES[403], 404: _ERROR_RESPONSES[404]},
    summary="End the story (leader or current writer)",
)
async def end_session(
    server_id: str,
    request_data: ActorRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> EndSessionResponse:
    bind_server_context(server_id, request_data.actor_id)
    try:
        session = await service.end_session(server_id, request_data.actor_id)
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    return EndSessionResponse(
        server_id=server_id,
        story=[
            StoryTurnModel(author_id=t.author_id, text=t.text, timestamp=t.timestamp)
            for t in session.story
        ],
    )


@router.post(
    "/{server_id}/session/skip",
    response_model=SkipStepResponse,
    responses={403: _ERROR_RESPONSES[403], 404: _ERROR_RESPONSES[404]},
    summary="Skip the current step (leader only)",
)
async def skip_step(
    server_id: str,
    request_data: ActorRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> SkipStepResponse:
    bind_server_context(server_id, request_data.actor_id)
    try:
        session = await service.skip_step(server_id, request_data.actor_id)
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None
    if session is None:
        return SkipStepResponse(removed=True)
    return SkipStepResponse(removed=False, session=SessionResponse.from_session(session))


@router.post(
    "/{server_id}/session/reset",
    status_code=204,
    responses={403: _ERROR_RESPONSES[403], 404: _ERROR_RESPONSES[404]},
    summary="Clear a stuck session (leader or admin)",
)
async def reset_session(
    server_id: str,
    request_data: ResetSessionRequest,
    request: Request,
    service: StorySessionService = Depends(get_session_service),
) -> None:
    bind_server_context(server_id, request_data.actor_id)
    try:
        await service.reset_session(
            server_id, request_data.actor_id, request_data.is_admin
        )
    except StorySessionError as e:
        raise _to_http_exception(e, request) from None


@router.post(
    "/{server_id}/session/thread-messages",
    response_model=ThreadMessageResponse,
    summary="Enforce the read-only story thread",
)
async def guard_thread_message(
    server_id: str,
    request_data: ThreadMessageRequest,
    service: StorySessionService = Depends(get_session_service),
) -> ThreadMessageResponse:
    """Redact a participant message posted in the active story thread.

    Messages outside the story thread, and bot messages, are ignored.
    """
    bind_server_context(server_id, request_data.author_id)
    redacted = await service.guard_thread_message(
        server_id=server_id,
        thread_id=request_data.thread_id,
        author_id=request_data.author_id,
        author_is_bot=request_data.author_is_bot,
        message_ref=request_data.message_ref,
        content=request_data.content,
    )
    return ThreadMessageResponse(redacted=redacted)
