# bot/routers/judging.py
import logging
from typing import Optional
from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.user import UserRead
from demo_day.errors import JudgingError
from demo_day.i18n import Localizer, lang_code2language
from demo_day.bot.services.event import EventService
from demo_day.bot.services.judge import JudgeService
from demo_day.bot.services.scoring_lock import ScoringLockService
from demo_day.bot.services.deliberation import DeliberationService
from demo_day.bot.services.winner import WinnerService

router = Router(name="judging")
logger = logging.getLogger(__name__)


def get_localizer(message: Message) -> Localizer:
    lang_code = message.from_user.language_code if message.from_user else None
    return Localizer(lang_code2language(lang_code))


async def resolve_event(message: Message, command: CommandObject, usage_key: str) -> tuple[Optional[EventRead], list[str]]:
    """Reads ``<slug> [rest...]`` from the command and answers when it cannot."""
    localizer = get_localizer(message)
    args = (command.args or "").split()
    if not args:
        await message.answer(localizer.get(f"judging.usage.{usage_key}"))
        return None, []

    event = await EventService().get_event_by_slug(args[0])
    if event is None:
        await message.answer(localizer.get("judging.event_not_found", slug=args[0]))
        return None, []
    return event, args[1:]


async def answer_error(message: Message, exc: JudgingError) -> None:
    logger.info("Judging command rejected: %s", exc)
    await message.answer(get_localizer(message).get("judging.error", message=str(exc)))


@router.message(Command("join"))
async def join_as_judge(message: Message, command: CommandObject, current_user: UserRead) -> None:
    event, rest = await resolve_event(message, command, "join")
    if event is None:
        return

    try:
        await JudgeService().join_as_judge(current_user, event.id, code=rest[0] if rest else None)
    except JudgingError as exc:
        await answer_error(message, exc)
        return

    await message.answer(get_localizer(message).get("judging.join.done", event=event.name))


@router.message(Command("assigned"))
async def list_teams_to_score(message: Message, command: CommandObject, current_user: UserRead) -> None:
    event, _ = await resolve_event(message, command, "assigned")
    if event is None:
        return

    localizer = get_localizer(message)
    try:
        teams = await JudgeService().list_teams_to_score(current_user, event.id)
    except JudgingError as exc:
        await answer_error(message, exc)
        return

    if not teams:
        await message.answer(localizer.get("judging.assigned.empty", event=event.name))
        return

    lines = [localizer.get("judging.assigned.header", event=event.name)]
    for team in teams:
        lines.append(localizer.get("judging.assigned.line", team=team.name, track=f" [{team.track}]" if team.track else ""))
    await message.answer("\n".join(lines))


@router.message(Command("lock"))
async def lock_scoring(message: Message, command: CommandObject, current_user: UserRead) -> None:
    event, rest = await resolve_event(message, command, "lock")
    if event is None:
        return

    localizer = get_localizer(message)
    try:
        lock = await ScoringLockService().lock(current_user, event.id, reason=" ".join(rest) or None)
    except JudgingError as exc:
        await answer_error(message, exc)
        return

    text = localizer.get("judging.lock.done", event=event.name, locked_at=lock.locked_at.strftime("%Y-%m-%d %H:%M UTC"))
    if lock.reason:
        text += "\n" + localizer.get("judging.lock.reason", reason=lock.reason)
    await message.answer(text)


@router.message(Command("unlock"))
async def unlock_scoring(message: Message, command: CommandObject, current_user: UserRead) -> None:
    event, _ = await resolve_event(message, command, "unlock")
    if event is None:
        return

    try:
        await ScoringLockService().unlock(current_user, event.id)
    except JudgingError as exc:
        await answer_error(message, exc)
        return

    await message.answer(get_localizer(message).get("judging.unlock.done", event=event.name))


@router.message(Command("deliberation"))
async def show_deliberation(message: Message, command: CommandObject, current_user: UserRead) -> None:
    event, _ = await resolve_event(message, command, "deliberation")
    if event is None:
        return

    localizer = get_localizer(message)
    view = await DeliberationService().build_view(current_user, event.id)
    if view is None:
        await message.answer(localizer.get("judging.deliberation.unavailable", event=event.name))
        return

    lines = [localizer.get("judging.deliberation.header", event=event.name)]
    for card in view.prizes:
        lines.append(localizer.get("judging.deliberation.prize", prize=card.prize.name, count=card.submission_count))
        if not card.candidates:
            lines.append(localizer.get("judging.deliberation.no_candidates"))
        for rank, candidate in enumerate(card.candidates, start=1):
            lines.append(
                localizer.get(
                    "judging.deliberation.candidate",
                    rank=rank,
                    team=candidate.team_name,
                    score=f"{candidate.average_score:.2f}",
                    judges=candidate.judge_count,
                )
            )
    await message.answer("\n".join(lines))


@router.message(Command("winners"))
async def show_winners(message: Message, command: CommandObject, current_user: UserRead) -> None:
    event, _ = await resolve_event(message, command, "winners")
    if event is None:
        return

    localizer = get_localizer(message)
    # participants only see winners once results are released
    if not (current_user.is_admin or event.results_released):
        await message.answer(localizer.get("judging.winners.empty", event=event.name))
        return

    winners = await WinnerService().list_winners(event.id)
    if not winners:
        await message.answer(localizer.get("judging.winners.empty", event=event.name))
        return

    lines = [localizer.get("judging.winners.header", event=event.name)]
    for winner in winners:
        placement = f" (#{winner.placement})" if winner.placement is not None else ""
        lines.append(localizer.get("judging.winners.line", prize=winner.prize.name, team=winner.team.name, placement=placement))
    await message.answer("\n".join(lines))
