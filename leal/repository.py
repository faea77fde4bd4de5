"""SQL storage for the loyalty programme."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, not_, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from leal.entities import (
    Branch,
    Business,
    Campaign,
    ConversionFactor,
    Earnings,
    Redemption,
    Reward,
    Transaction,
    User,
    UserBalance,
)
from leal.errors import (
    BadRequestError,
    DuplicatedKeyError,
    InternalServerError,
    LealError,
    SavingError,
)

_FOREIGN_KEY = "foreign_key"
_UNIQUE = "unique"

_UPSERT_DIALECTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def _violation(exc: IntegrityError) -> Optional[str]:
    """Tell a foreign-key violation from a uniqueness violation."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "23503":
        return _FOREIGN_KEY
    if code == "23505":
        return _UNIQUE
    text = str(orig if orig is not None else exc).upper()
    if "FOREIGN KEY" in text:
        return _FOREIGN_KEY
    if "UNIQUE" in text:
        return _UNIQUE
    return None


class SqlRepository:
    """Repository backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = sessionmaker(engine, expire_on_commit=False)

    def _insert(
        self,
        entity: object,
        *,
        fallback: LealError,
        unique: Optional[LealError] = None,
        foreign_key: Optional[LealError] = None,
    ) -> None:
        try:
            with self._sessions.begin() as session:
                session.add(entity)
        except IntegrityError as exc:
            kind = _violation(exc)
            if kind == _FOREIGN_KEY and foreign_key is not None:
                raise foreign_key from exc
            if kind == _UNIQUE and unique is not None:
                raise unique from exc
            raise fallback from exc
        except SQLAlchemyError as exc:
            raise fallback from exc

    def insert_conversion_factor(self, factor: ConversionFactor) -> None:
        self._insert(
            factor,
            fallback=InternalServerError("error inserting the conversion factor"),
            unique=DuplicatedKeyError(f"conversion factor to {factor.business_tax_id} already exists"),
        )

    def insert_redemption(self, redemption: Redemption) -> None:
        self._insert(
            redemption,
            fallback=InternalServerError("error inserting the redemption"),
            unique=DuplicatedKeyError(f"redemption {redemption.user_document_number} already exists"),
            foreign_key=SavingError(f"el business_tax_id {redemption.business_tax_id} no existe"),
        )

    def insert_campaign(self, campaign: Campaign) -> None:
        overlapping = (
            select(Campaign)
            .where(
                and_(
                    Campaign.business_tax_id == campaign.business_tax_id,
                    Campaign.branch_id == campaign.branch_id,
                    not_(
                        or_(
                            Campaign.end_date < campaign.start_date,
                            Campaign.start_date > campaign.end_date,
                        )
                    ),
                )
            )
            .order_by(Campaign.id)
            .limit(1)
        )
        try:
            with self._sessions() as session:
                existing = session.scalars(overlapping).first()
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al validar la existencia de campañas: {exc}") from exc
        if existing is not None:
            raise DuplicatedKeyError(
                "ya existe una campaña en este rango de fechas para la sucursal "
                f"{campaign.branch_id} del negocio {campaign.business_tax_id}"
            )
        self._insert(
            campaign,
            fallback=InternalServerError("error inserting the campaign"),
            unique=DuplicatedKeyError(f"campaign to {campaign.business_tax_id} already exists"),
            foreign_key=SavingError(f"el business_tax_id {campaign.business_tax_id} no existe"),
        )

    def insert_business(self, business: Business) -> None:
        if not business.name:
            raise BadRequestError()
        clash = (
            select(Business)
            .where(
                or_(
                    Business.name == business.name,
                    Business.tax_id == business.tax_id,
                    Business.email == business.email,
                )
            )
            .limit(1)
        )
        try:
            with self._sessions() as session:
                existing = session.scalars(clash).first()
        except SQLAlchemyError:
            existing = None
        if existing is not None:
            raise DuplicatedKeyError("business with the same name, tax ID, or email already exists")
        self._insert(
            business,
            fallback=InternalServerError("error inserting the business"),
            unique=DuplicatedKeyError(f"business {business.name} already exists"),
        )

    def insert_branch(self, branch: Branch) -> None:
        if not branch.name:
            raise BadRequestError()
        self._insert(
            branch,
            fallback=InternalServerError("error inserting the branch"),
            unique=DuplicatedKeyError(f"branch {branch.name} already exists"),
            foreign_key=SavingError(f"el business_tax_id {branch.business_tax_id} no existe"),
        )

    def insert_reward(self, reward: Reward) -> None:
        if not reward.name:
            raise BadRequestError()
        self._insert(
            reward,
            fallback=InternalServerError("error inserting the reward"),
            unique=DuplicatedKeyError(f"reward {reward.name} already exists"),
            foreign_key=SavingError(f"el business_tax_id {reward.business_tax_id} no existe"),
        )

    def insert_user(self, user: User) -> None:
        if not user.email or not user.name:
            raise BadRequestError()
        self._insert(
            user,
            fallback=InternalServerError("error inserting user"),
            unique=DuplicatedKeyError(f"email {user.email} already exists"),
        )

    def get_branches(self, tax_id: int) -> list[Branch]:
        query = select(Branch).where(Branch.business_tax_id == tax_id).order_by(Branch.id)
        try:
            with self._sessions() as session:
                branches = list(session.scalars(query).all())
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar branches: {exc}") from exc
        if not branches:
            from leal.errors import NotFoundError

            raise NotFoundError(f"no se encontraron sucursales para el tax_id: {tax_id}")
        return branches

    def get_campaigns(self, tax_id: int) -> list[Campaign]:
        query = select(Campaign).where(Campaign.business_tax_id == tax_id).order_by(Campaign.id)
        try:
            with self._sessions() as session:
                campaigns = list(session.scalars(query).all())
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar campañas: {exc}") from exc
        if not campaigns:
            from leal.errors import NotFoundError

            raise NotFoundError(f"no se encontraron campañas para el tax_id: {tax_id}")
        return campaigns

    def get_user_balance(self, user_id: int) -> UserBalance:
        query = select(UserBalance).where(UserBalance.user_id == user_id)
        try:
            with self._sessions() as session:
                balance = session.scalars(query).first()
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar balance: {exc}") from exc
        if balance is None:
            return UserBalance(user_id=0, points=0, cashback=0.0)
        return balance

    def get_reward(self, reward_id: int) -> Reward:
        query = select(Reward).where(Reward.id == reward_id)
        try:
            with self._sessions() as session:
                reward = session.scalars(query).first()
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar reward: {exc}") from exc
        if reward is None:
            return Reward(name="", description="", points_required=0, business_tax_id=0)
        return reward

    def find_branch(self, branch_id: int) -> Optional[Branch]:
        try:
            with self._sessions() as session:
                return session.get(Branch, branch_id)
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar la sucursal: {exc}") from exc

    def find_conversion_factor(self, business_tax_id: int, branch_id: int) -> Optional[ConversionFactor]:
        query = (
            select(ConversionFactor)
            .where(
                ConversionFactor.business_tax_id == business_tax_id,
                or_(ConversionFactor.branch_id == branch_id, ConversionFactor.branch_id.is_(None)),
            )
            .order_by(
                ConversionFactor.branch_id.is_(None),
                ConversionFactor.branch_id.desc(),
                ConversionFactor.id,
            )
            .limit(1)
        )
        try:
            with self._sessions() as session:
                return session.scalars(query).first()
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar el factor de conversión: {exc}") from exc

    def find_active_campaign(self, branch_id: int, now: datetime) -> Optional[Campaign]:
        query = (
            select(Campaign)
            .where(
                Campaign.branch_id == branch_id,
                Campaign.start_date <= now,
                Campaign.end_date >= now,
            )
            .order_by(Campaign.id)
            .limit(1)
        )
        try:
            with self._sessions() as session:
                return session.scalars(query).first()
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error al consultar campañas activas: {exc}") from exc

    def save_transaction(self, transaction: Transaction, earnings: Earnings) -> None:
        try:
            with self._sessions.begin() as session:
                session.add(transaction)
                session.flush()
                earnings.transaction_id = transaction.id
                session.add(earnings)
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error saving the transaction: {exc}") from exc

    def update_user_redeem_points(self, user_id: int, points: int) -> None:
        statement = (
            update(UserBalance)
            .where(UserBalance.user_id == user_id)
            .values(points=UserBalance.points - points)
        )
        try:
            with self._sessions.begin() as session:
                session.execute(statement)
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error updating the balance: {exc}") from exc

    def update_user_balance(self, user_id: int, points: int, cashback: float) -> None:
        now = datetime.now()
        insert = _UPSERT_DIALECTS.get(self.engine.dialect.name)
        try:
            with self._sessions.begin() as session:
                if insert is not None:
                    table = UserBalance.__table__
                    statement = insert(table).values(
                        user_id=user_id, points=points, cashback=cashback, updated_at=now
                    )
                    statement = statement.on_conflict_do_update(
                        index_elements=[table.c.user_id],
                        set_={
                            "points": table.c.points + statement.excluded.points,
                            "cashback": table.c.cashback + statement.excluded.cashback,
                            "updated_at": now,
                        },
                    )
                    session.execute(statement)
                else:
                    balance = session.get(UserBalance, user_id, with_for_update=True)
                    if balance is None:
                        session.add(
                            UserBalance(user_id=user_id, points=points, cashback=cashback, updated_at=now)
                        )
                    else:
                        balance.points += points
                        balance.cashback += cashback
                        balance.updated_at = now
        except SQLAlchemyError as exc:
            raise InternalServerError(f"error updating the balance: {exc}") from exc