"""Business rules for users, businesses, branches, campaigns and rewards."""

from __future__ import annotations

import re
from datetime import datetime

from leal import entities, models
from leal.errors import BadRequestError, LealError
from leal.ports import Repository
from leal.requests import (
    CreateBranch,
    CreateBusiness,
    CreateCampaign,
    CreateReward,
    CreateUser,
    RedeemPoints,
)

_DATE_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class InsufficientPointsError(LealError):
    default_message = "puntos insuficientes para reclamar el premio"


def _parse_date(text: str) -> datetime:
    if not _DATE_SHAPE.fullmatch(text):
        raise BadRequestError(f"invalid date format: {text!r} is not YYYY-MM-DD")
    try:
        return datetime.strptime(text, "%Y-%m-%d")
    except ValueError as exc:
        raise BadRequestError(f"invalid date format: {exc}") from exc


def _format_date(moment: datetime) -> str:
    return moment.date().isoformat()


class LoyaltyService:
    """The loyalty operations, backed by a repository."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def create_user(self, request: CreateUser) -> None:
        user = entities.User(
            name=request.name,
            document_number=request.document_number,
            email=request.email,
        )
        self.repo.insert_user(user)

    def create_reward(self, request: CreateReward) -> None:
        reward = entities.Reward(
            name=request.name,
            description=request.description,
            points_required=request.points_required,
            business_tax_id=request.business_tax_id,
        )
        self.repo.insert_reward(reward)

    def create_campaign(self, request: CreateCampaign) -> None:
        start = _parse_date(request.start_date)
        end = _parse_date(request.end_date)
        campaign = entities.Campaign(
            business_tax_id=request.tax_id,
            branch_id=request.branch_id,
            start_date=start,
            end_date=end,
            points_multiplier=request.points_multiplier,
            cashback_multiplier=request.cashback_multiplier,
            min_purchase_amount=request.min_purchase_amount,
        )
        self.repo.insert_campaign(campaign)

    def create_business(self, request: CreateBusiness) -> None:
        business = entities.Business(
            name=request.razon_social,
            tax_id=request.nit,
            phone=request.telefono,
            email=request.correo,
        )
        self.repo.insert_business(business)
        factor = request.conversion_factor
        self.repo.insert_conversion_factor(
            entities.ConversionFactor(
                business_tax_id=request.nit,
                branch_id=None,
                min_amount=factor.min_amount,
                points_per_currency=factor.points_per_currency,
                cashback_per_currency=factor.cashback_per_currency,
            )
        )

    def create_branch(self, request: CreateBranch) -> None:
        branch = entities.Branch(
            business_tax_id=request.nit_empresa,
            name=request.nombre_sucursal,
        )
        self.repo.insert_branch(branch)
        factor = request.conversion_factor
        self.repo.insert_conversion_factor(
            entities.ConversionFactor(
                business_tax_id=request.nit_empresa,
                branch_id=branch.id,
                min_amount=factor.min_amount,
                points_per_currency=factor.points_per_currency,
                cashback_per_currency=factor.cashback_per_currency,
            )
        )

    def obtain_branches(self, tax_id: int) -> list[models.Branch]:
        return [models.Branch(id=branch.id, nombre=branch.name) for branch in self.repo.get_branches(tax_id)]

    def obtain_campaign(self, tax_id: int) -> list[models.Campaign]:
        return [
            models.Campaign(
                id=campaign.id,
                branch_id=campaign.business_tax_id,
                start_date=_format_date(campaign.start_date),
                end_date=_format_date(campaign.end_date),
                points_multiplier=campaign.points_multiplier,
                cashback_multiplier=campaign.cashback_multiplier,
                min_purchase_amount=campaign.min_purchase_amount,
            )
            for campaign in self.repo.get_campaigns(tax_id)
        ]

    def redeem_points(self, request: RedeemPoints) -> int:
        document_number = request.user.document_number
        balance = self.repo.get_user_balance(document_number)
        reward = self.repo.get_reward(request.reward_id)
        required = reward.points_required or 0
        if (balance.points or 0) < required:
            raise InsufficientPointsError()
        self.repo.update_user_redeem_points(document_number, required)
        self.repo.insert_redemption(
            entities.Redemption(
                user_document_number=document_number,
                business_tax_id=request.business_tax_id,
                reward_id=request.reward_id,
                points_spent=required,
            )
        )
        return required