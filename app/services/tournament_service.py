"""Tournament service — tournaments, registrations, brackets and notifications.

Cached entries (namespace ``tournaments``): ``<id>``, ``featured`` and
``upcoming``. Registration counts feed into every response, so any
tournament or registration write clears the whole namespace.
"""

import math
import random
from datetime import date, datetime, timezone
from typing import Sequence
from uuid import UUID

import aiosmtplib
from loguru import logger
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.player import Player
from app.models.tournament import (
    ACTIVE_REGISTRATION_STATUSES,
    RegistrationStatus,
    Tournament,
    TournamentRegistration,
    TournamentStatus,
)
from app.repositories.district_repository import district_repository
from app.repositories.player_repository import player_repository
from app.repositories.tournament_repository import registration_repository, tournament_repository
from app.schemas.tournament import (
    BracketMatch,
    BracketPlayer,
    BracketResponse,
    BracketRound,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationStatusUpdate,
    TournamentCreate,
    TournamentResponse,
    TournamentUpdate,
)
from app.utils.cache import cache
from app.utils.dates import today
from app.utils.email import render_notification_email, send_email
from app.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from app.utils.pagination import Page

CACHE_NAME: str = "tournaments"

_TOURNAMENT = TypeAdapter(TournamentResponse)
_TOURNAMENT_LIST = TypeAdapter(list[TournamentResponse])


def round_name(round_number: int, total_rounds: int) -> str:
    """Final, Semi-Final, Quarter-Final, otherwise "Round N"."""
    if round_number == total_rounds:
        return "Final"
    if round_number == total_rounds - 1:
        return "Semi-Final"
    if round_number == total_rounds - 2:
        return "Quarter-Final"
    return f"Round {round_number}"


def registration_response(registration: TournamentRegistration) -> RegistrationResponse:
    """Convert a registration (player eager-loaded) to its response."""
    player: Player | None = registration.player
    return RegistrationResponse(
        id=registration.id,
        tournament_id=registration.tournament_id,
        player_id=registration.player_id,
        player_name=player.name if player is not None else None,
        registration_date=registration.registration_date,
        payment_status=registration.payment_status,
        payment_amount=registration.payment_amount,
        payment_reference=registration.payment_reference,
        status=registration.status,
        notes=registration.notes,
    )


class TournamentService:
    """Service handling tournament business logic."""

    async def _get_or_404(self, db: AsyncSession, tournament_id: UUID) -> Tournament:
        tournament: Tournament | None = await tournament_repository.get_by_id(db, tournament_id)
        if tournament is None:
            raise NotFoundError("Tournament not found")
        return tournament

    async def _ensure_district(self, db: AsyncSession, district_id: UUID | None) -> None:
        if district_id is not None and await district_repository.get_by_id(db, district_id) is None:
            raise NotFoundError("District not found")

    def _to_response(self, tournament: Tournament, registration_count: int) -> TournamentResponse:
        return TournamentResponse.model_validate(tournament).model_copy(
            update={
                "current_registration_count": registration_count,
                "has_available_slots": tournament.slots_available(registration_count),
            }
        )

    async def _to_responses(self, db: AsyncSession, tournaments: Sequence[Tournament]) -> list[TournamentResponse]:
        counts = await tournament_repository.registration_counts(db, [t.id for t in tournaments])
        return [self._to_response(t, counts.get(t.id, 0)) for t in tournaments]

    async def _single(self, db: AsyncSession, tournament: Tournament) -> TournamentResponse:
        count = await tournament_repository.count_active_registrations(db, tournament.id)
        return self._to_response(tournament, count)

    # --- Reads --------------------------------------------------------------

    async def list_all(self, db: AsyncSession) -> list[TournamentResponse]:
        return await self._to_responses(db, await tournament_repository.list_all(db))

    async def list_paginated(self, db: AsyncSession, page: int, size: int) -> Page[TournamentResponse]:
        tournaments, total = await tournament_repository.get_page(db, tournament_repository.list_query(), page, size)
        return Page[TournamentResponse].build(await self._to_responses(db, tournaments), total, page, size)

    async def get_tournament(self, db: AsyncSession, tournament_id: UUID) -> TournamentResponse:
        async def load() -> TournamentResponse:
            return await self._single(db, await self._get_or_404(db, tournament_id))

        return await cache.get_or_load(CACHE_NAME, str(tournament_id), _TOURNAMENT, load)

    async def upcoming(self, db: AsyncSession) -> list[TournamentResponse]:
        async def load() -> list[TournamentResponse]:
            return await self._to_responses(db, await tournament_repository.get_upcoming(db, today()))

        return await cache.get_or_load(CACHE_NAME, "upcoming", _TOURNAMENT_LIST, load)

    async def by_status(self, db: AsyncSession, status: TournamentStatus) -> list[TournamentResponse]:
        return await self._to_responses(db, await tournament_repository.get_by_status(db, status.value))

    async def featured(self, db: AsyncSession) -> list[TournamentResponse]:
        async def load() -> list[TournamentResponse]:
            return await self._to_responses(db, await tournament_repository.get_featured(db))

        return await cache.get_or_load(CACHE_NAME, "featured", _TOURNAMENT_LIST, load)

    async def by_district(self, db: AsyncSession, district_id: UUID) -> list[TournamentResponse]:
        return await self._to_responses(db, await tournament_repository.get_by_district(db, district_id))

    async def in_date_range(self, db: AsyncSession, start: date, end: date) -> list[TournamentResponse]:
        if start > end:
            raise BadRequestError("Start date must be on or before end date")
        return await self._to_responses(db, await tournament_repository.get_in_range(db, start, end))

    async def search(self, db: AsyncSession, term: str) -> list[TournamentResponse]:
        return await self._to_responses(db, await tournament_repository.search(db, term))

    # --- Writes -------------------------------------------------------------

    async def create_tournament(self, db: AsyncSession, data: TournamentCreate) -> TournamentResponse:
        await self._ensure_district(db, data.district_id)
        tournament = await tournament_repository.create(db, data.model_dump())
        await cache.clear(CACHE_NAME)
        logger.info("Created tournament {} ({})", tournament.name, tournament.id)
        return self._to_response(tournament, 0)

    async def update_tournament(self, db: AsyncSession, tournament_id: UUID, data: TournamentUpdate) -> TournamentResponse:
        """Apply a partial update; the merged date ranges must stay ordered."""
        tournament = await self._get_or_404(db, tournament_id)
        update_data = data.model_dump(exclude_unset=True)
        if "district_id" in update_data:
            await self._ensure_district(db, update_data["district_id"])

        start = update_data.get("start_date", tournament.start_date)
        end = update_data.get("end_date", tournament.end_date)
        if start is not None and end is not None and start > end:
            raise BadRequestError("Tournament start date must be on or before the end date")
        reg_start = update_data.get("registration_start_date", tournament.registration_start_date)
        reg_end = update_data.get("registration_end_date", tournament.registration_end_date)
        if reg_start is not None and reg_end is not None and reg_start > reg_end:
            raise BadRequestError("Registration start date must be on or before the end date")

        tournament = await tournament_repository.update(db, tournament, update_data)
        await cache.clear(CACHE_NAME)
        return await self._single(db, tournament)

    async def delete_tournament(self, db: AsyncSession, tournament_id: UUID) -> None:
        """Hard delete; registrations go with it via the foreign key cascade."""
        tournament = await self._get_or_404(db, tournament_id)
        await tournament_repository.delete(db, tournament)
        await cache.clear(CACHE_NAME)
        logger.info("Deleted tournament {}", tournament_id)

    async def update_status(self, db: AsyncSession, tournament_id: UUID, status: TournamentStatus | str) -> TournamentResponse:
        """Change the status and notify registered players where relevant."""
        status = TournamentStatus(status)
        tournament = await self._get_or_404(db, tournament_id)
        old_status = tournament.status
        tournament.status = status.value
        await db.flush()
        await cache.clear(CACHE_NAME)
        logger.info("Tournament {} status {} -> {}", tournament.id, old_status, status.value)

        if status is TournamentStatus.REGISTRATION_OPEN:
            logger.info("Registration opened for tournament {}", tournament.name)
        elif status is TournamentStatus.ONGOING:
            await self._notify_registered(
                db,
                tournament,
                f"Tournament Starting: {tournament.name}",
                f"The tournament '{tournament.name}' is starting on {tournament.start_date} at {tournament.venue or 'the announced venue'}. Good luck!",
            )
        elif status is TournamentStatus.COMPLETED:
            await self._notify_registered(
                db,
                tournament,
                f"Tournament Completed: {tournament.name}",
                f"The tournament '{tournament.name}' has been completed. Thank you for participating!",
            )
        return await self._single(db, tournament)

    # --- Notifications ------------------------------------------------------

    async def _notify(self, player: Player, title: str, body: str) -> None:
        """Send one notification; delivery failures are logged, never raised."""
        if not player.contact_email:
            return
        html, text = render_notification_email(player.name, title, body)
        try:
            await send_email(player.contact_email, title, html, text=text)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Failed to notify player {}: {}", player.id, exc)

    async def _notify_registered(self, db: AsyncSession, tournament: Tournament, title: str, body: str) -> None:
        registrations = await registration_repository.get_for_tournament(db, tournament.id, active_only=True)
        for registration in registrations:
            await self._notify(registration.player, title, body)

    # --- Registrations ------------------------------------------------------

    async def register_player(self, db: AsyncSession, tournament_id: UUID, data: RegistrationCreate) -> RegistrationResponse:
        """Register a player.

        A withdrawn or disqualified registration of the same player is
        reactivated instead of inserting a second row.

        Raises:
            NotFoundError: Unknown tournament or player
            BadRequestError: Registration closed or tournament full
            DuplicateError: Player already holds an active registration
        """
        tournament = await self._get_or_404(db, tournament_id)
        player: Player | None = await player_repository.get_by_id(db, data.player_id)
        if player is None or not player.is_active:
            raise NotFoundError("Player not found")

        if not tournament.is_registration_open:
            raise BadRequestError("Tournament registration is not open")

        count = await tournament_repository.count_active_registrations(db, tournament.id)
        if not tournament.slots_available(count):
            raise BadRequestError("Tournament is full")

        existing = (
            await registration_repository.get_all(db, {"tournament_id": tournament.id, "player_id": player.id})
        )
        if existing and existing[0].status in ACTIVE_REGISTRATION_STATUSES:
            raise DuplicateError("Player is already registered for this tournament")

        fields = {
            "payment_amount": data.payment_amount,
            "payment_reference": data.payment_reference,
            "notes": data.notes,
        }
        if existing:
            registration = await registration_repository.update(
                db,
                existing[0],
                {**fields, "status": RegistrationStatus.REGISTERED.value, "registration_date": datetime.now(timezone.utc)},
            )
        else:
            registration = await registration_repository.create(
                db, {**fields, "tournament_id": tournament.id, "player_id": player.id}
            )
        registration.player = player
        await cache.clear(CACHE_NAME)
        logger.info("Player {} registered for tournament {}", player.id, tournament.id)

        await self._notify(
            player,
            f"Registration Confirmed: {tournament.name}",
            f"Your registration for '{tournament.name}' has been confirmed. Tournament starts on {tournament.start_date} at {tournament.venue or 'the announced venue'}.",
        )
        return registration_response(registration)

    async def list_registrations(self, db: AsyncSession, tournament_id: UUID) -> list[RegistrationResponse]:
        await self._get_or_404(db, tournament_id)
        registrations = await registration_repository.get_for_tournament(db, tournament_id)
        return [registration_response(r) for r in registrations]

    async def update_registration_status(
        self, db: AsyncSession, tournament_id: UUID, registration_id: UUID, data: RegistrationStatusUpdate
    ) -> RegistrationResponse:
        await self._get_or_404(db, tournament_id)
        registration = await registration_repository.get_one(db, tournament_id, registration_id)
        if registration is None:
            raise NotFoundError("Registration not found")
        registration.status = data.status
        if data.payment_status is not None:
            registration.payment_status = data.payment_status
        await db.flush()
        await cache.clear(CACHE_NAME)
        return registration_response(registration)

    # --- Bracket ------------------------------------------------------------

    async def generate_bracket(self, db: AsyncSession, tournament_id: UUID) -> BracketResponse:
        """Build a single-elimination bracket from the active registrations.

        Players are shuffled, paired in order, and an odd player out gets a
        walkover. Only round 1 is populated; the bracket is not persisted.

        Raises:
            BadRequestError: No active registrations
        """
        tournament = await self._get_or_404(db, tournament_id)
        registrations = list(await registration_repository.get_for_tournament(db, tournament.id, active_only=True))
        if not registrations:
            raise BadRequestError("No active registrations found for tournament")

        random.shuffle(registrations)
        players = [BracketPlayer(player_id=r.player_id, name=r.player.name) for r in registrations]
        total_rounds = max(1, math.ceil(math.log2(len(players))))

        matches: list[BracketMatch] = []
        for number, i in enumerate(range(0, len(players), 2), start=1):
            player1 = players[i]
            if i + 1 < len(players):
                matches.append(BracketMatch(match_number=number, player1=player1, player2=players[i + 1], status="PENDING"))
            else:
                # Bye: the odd player advances
                matches.append(BracketMatch(match_number=number, player1=player1, player2=None, winner=player1, status="WALKOVER"))

        rounds = [BracketRound(round_number=1, round_name=round_name(1, total_rounds), matches=matches)]
        rounds += [
            BracketRound(round_number=n, round_name=round_name(n, total_rounds), matches=[])
            for n in range(2, total_rounds + 1)
        ]
        logger.info("Generated bracket for tournament {} with {} players", tournament.id, len(players))
        return BracketResponse(
            tournament_id=tournament.id,
            tournament_name=tournament.name,
            total_players=len(players),
            total_rounds=total_rounds,
            rounds=rounds,
            generated_at=datetime.now(timezone.utc),
        )


# Singleton instance
tournament_service: TournamentService = TournamentService()
